
"""Motor de consulta: texto (substring case-insensitive) E categorias ativas."""
from __future__ import annotations
from typing import Iterable
from ..ports.interfaces import MenuQuery, MenuRecord, MenuStorePort

def evaluate(store: MenuStorePort, text_query: str = "", active_categories: Iterable[str] = ()) -> list[MenuRecord]:
    """Leitura pura sobre o store. Categorias vazias = todas as categorias."""
    return store.query(MenuQuery(text=text_query or "", categories=frozenset(active_categories)))

def matches(record: MenuRecord, text_query: str = "", active_categories: Iterable[str] = ()) -> bool:
    """Mesma regra de `evaluate`, aplicada a um registro em memória."""
    cats = frozenset(active_categories)
    if cats and record.category not in cats:
        return False
    return (text_query or "").casefold() in record.name.casefold()
