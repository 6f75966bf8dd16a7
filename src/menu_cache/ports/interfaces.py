
"""Portas hexagonais (interfaces) e DTOs do cache de cardápio."""
from __future__ import annotations
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Protocol, Sequence
from pydantic import BaseModel, ConfigDict, Field

class MenuRecord(BaseModel):
    """Item de cardápio persistido. Imutável; identidade = id."""
    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    price: Decimal = Field(max_digits=10, decimal_places=2)
    description: str = ""
    image: str = ""
    category: str

class Section(BaseModel):
    """Grupo derivado (nunca persistido) de itens que compartilham a categoria."""
    model_config = ConfigDict(frozen=True)

    name: str
    items: tuple[MenuRecord, ...] = ()

class FilterState(BaseModel):
    """Texto de busca + categorias ativas. Conjunto vazio = todas as categorias."""
    model_config = ConfigDict(frozen=True)

    text_query: str = ""
    active_categories: frozenset[str] = Field(default_factory=frozenset)

    @classmethod
    def from_toggles(cls, categories: Sequence[str], selections: Sequence[bool], text_query: str = "") -> "FilterState":
        """Monta o filtro a partir de toggles paralelos à lista de categorias."""
        if len(categories) != len(selections):
            raise ValueError("categories and selections must have the same length")
        active = frozenset(c for c, on in zip(categories, selections) if on)
        return cls(text_query=text_query, active_categories=active)

class RemoteMenuItemDTO(BaseModel):
    """Formato de um item no documento remoto (sem id)."""
    name: str = Field(min_length=1)
    price: Decimal = Field(max_digits=10, decimal_places=2)
    description: str = ""
    image: str = ""
    category: str = Field(min_length=1)

@dataclass(frozen=True)
class MenuQuery:
    """Predicado de consulta sobre o store (texto case-insensitive + categorias)."""
    text: str = ""
    categories: frozenset[str] = frozenset()

class MenuStorePort(Protocol):
    def initialize(self) -> None: ...
    def is_empty(self) -> bool: ...
    def replace_all(self, records: Iterable[MenuRecord]) -> None: ...
    def query(self, predicate: MenuQuery | None = None) -> list[MenuRecord]: ...

class MenuSourcePort(Protocol):
    def fetch(self, url: str | None = None) -> list[MenuRecord]: ...
