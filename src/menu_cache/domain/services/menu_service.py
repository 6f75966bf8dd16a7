
"""Serviço de cardápio: populate-if-empty, resync e busca projetada (síncrono)."""
from __future__ import annotations
from kink import di
from ..query_engine import evaluate
from ..sections import project
from ...core.errors import RemoteMalformed
from ...core.logging import get_logger
from ...ports.interfaces import FilterState, MenuRecord, MenuSourcePort, MenuStorePort, Section
from ...repo.menu_store import MenuStore
from ...connectors.remote.menu_source import RemoteMenuSource

log = get_logger()

def _store(store: MenuStorePort | None) -> MenuStorePort:
    return store or di[MenuStore]

def _source(source: MenuSourcePort | None) -> MenuSourcePort:
    return source or di[RemoteMenuSource]

def _fetch_non_empty(source: MenuSourcePort | None, url: str | None) -> list[MenuRecord]:
    records = _source(source).fetch(url)
    if not records:
        # menu vazio nunca é gravado; o store segue vazio e o bootstrap refaz o fetch
        log.warning("remote_menu_empty", url=url)
        raise RemoteMalformed("remote menu document has no items")
    return records

def ensure_populated(store: MenuStorePort | None = None, source: MenuSourcePort | None = None, url: str | None = None) -> bool:
    """Inicializa o store e, se vazio, popula a partir da origem remota.

    :return: True se houve fetch remoto, False se o store já tinha dados.
    """
    store = _store(store)
    store.initialize()
    if not store.is_empty():
        log.info("menu_cache_hit")
        return False
    records = _fetch_non_empty(source, url)
    store.replace_all(records)
    log.info("menu_cache_populated", count=len(records))
    return True

def resync(store: MenuStorePort | None = None, source: MenuSourcePort | None = None, url: str | None = None) -> int:
    """Substitui todo o conteúdo pelo documento remoto atual. Retorna a quantidade gravada."""
    store = _store(store)
    records = _fetch_non_empty(source, url)
    store.replace_all(records)
    log.info("menu_resynced", count=len(records))
    return len(records)

def search(filter_state: FilterState | None = None, store: MenuStorePort | None = None) -> list[Section]:
    """Consulta + projeção em seções para o filtro informado."""
    fs = filter_state or FilterState()
    return project(evaluate(_store(store), fs.text_query, fs.active_categories))
