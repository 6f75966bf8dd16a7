
"""Projeção em seções: agrupa por categoria e ordena seções e itens por nome."""
from __future__ import annotations
import locale
from typing import Iterable
from ..ports.interfaces import MenuRecord, Section

def display_category(category: str) -> str:
    """Primeira letra maiúscula, restante inalterado ("desserts" -> "Desserts")."""
    return category[:1].upper() + category[1:]

def _name_key(name: str) -> tuple[str, str]:
    return (locale.strxfrm(name.casefold()), name)

def project(records: Iterable[MenuRecord]) -> list[Section]:
    """Agrupa registros em seções ordenadas; desempate final por id."""
    groups: dict[str, list[MenuRecord]] = {}
    for r in records:
        groups.setdefault(display_category(r.category), []).append(r)
    return [
        Section(name=name, items=tuple(sorted(groups[name], key=lambda r: (*_name_key(r.name), r.id))))
        for name in sorted(groups, key=_name_key)
    ]
