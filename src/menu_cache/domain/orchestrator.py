
"""Orquestrador do cache: bootstrap, filtros coalescidos e publicação da projeção.

Estados: UNINITIALIZED -> BOOTSTRAPPING -> READY, com REFRESHING (sub-estado de READY)
enquanto houver consulta de filtro em voo. Todo I/O de store/rede roda em worker
threads (asyncio.to_thread); o event loop nunca bloqueia.
"""
from __future__ import annotations
import asyncio
from enum import Enum
from typing import Callable
from kink import di
from .services import menu_service
from ..core.coalesce import Coalescer
from ..core.errors import (
    BootstrapFailed, MenuCacheError, OrchestratorStateError, QueryFailed,
    RemoteMalformed, RemoteUnavailable, ResyncFailed, StorageUnavailable, StorageWriteError,
)
from ..core.logging import get_logger
from ..core.settings import Settings
from ..ports.interfaces import FilterState, MenuSourcePort, MenuStorePort, Section
from ..repo.menu_store import MenuStore
from ..connectors.remote.menu_source import RemoteMenuSource

log = get_logger()

_BOOTSTRAP_ERRORS = (StorageUnavailable, StorageWriteError, RemoteUnavailable, RemoteMalformed)

ProjectionListener = Callable[[list[Section]], None]
ErrorListener = Callable[[MenuCacheError], None]

class OrchestratorState(str, Enum):
    UNINITIALIZED = "uninitialized"
    BOOTSTRAPPING = "bootstrapping"
    READY = "ready"
    REFRESHING = "refreshing"

class CacheOrchestrator:
    """Ponto de entrada da camada de UI: bootstrap(), apply_filter(), subscribe()."""
    def __init__(self, store: MenuStorePort | None = None, source: MenuSourcePort | None = None,
                 settings: Settings | None = None, coalescer: Coalescer | None = None):
        self.settings = settings or di[Settings]
        self.store = store or di[MenuStore]
        self.source = source or di[RemoteMenuSource]
        self.coalescer = coalescer or Coalescer(self.settings.debounce_ms)
        self._state = OrchestratorState.UNINITIALIZED
        self._projection: tuple[Section, ...] = ()
        self._filter = FilterState()
        self._requested = FilterState()
        self._listeners: list[ProjectionListener] = []
        self._error_listeners: list[ErrorListener] = []
        self._bootstrap_lock = asyncio.Lock()
        self._inflight = 0

    # --- Leitura de estado ---
    @property
    def state(self) -> OrchestratorState:
        return self._state

    @property
    def projection(self) -> list[Section]:
        return list(self._projection)

    @property
    def filter_state(self) -> FilterState:
        """Último filtro cuja projeção foi aplicada."""
        return self._filter

    @property
    def is_ready(self) -> bool:
        return self._state in (OrchestratorState.READY, OrchestratorState.REFRESHING)

    # --- Observadores ---
    def subscribe(self, listener: ProjectionListener) -> Callable[[], None]:
        """Registra listener de projeção; retorna função para cancelar a inscrição."""
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener) if listener in self._listeners else None

    def on_error(self, listener: ErrorListener) -> Callable[[], None]:
        """Registra listener de avisos não bloqueantes (falha de consulta/resync)."""
        self._error_listeners.append(listener)
        return lambda: self._error_listeners.remove(listener) if listener in self._error_listeners else None

    def _publish(self, sections: list[Section]) -> None:
        self._projection = tuple(sections)
        current = self.projection
        for listener in list(self._listeners):
            try:
                listener(current)
            except Exception:
                log.exception("projection_listener_failed")

    def _notify_error(self, err: MenuCacheError) -> None:
        for listener in list(self._error_listeners):
            try:
                listener(err)
            except Exception:
                log.exception("error_listener_failed")

    # --- Operações ---
    async def bootstrap(self) -> list[Section]:
        """Inicializa o store, popula se vazio e publica a projeção inicial (filtro vazio).

        Idempotente: em READY retorna a projeção atual sem I/O. Em falha levanta
        BootstrapFailed e permanece em BOOTSTRAPPING (pode ser chamado de novo).
        """
        async with self._bootstrap_lock:
            if self.is_ready:
                return self.projection
            self._state = OrchestratorState.BOOTSTRAPPING
            try:
                fetched = await asyncio.to_thread(menu_service.ensure_populated, self.store, self.source, self.settings.menu_url)
                sections = await asyncio.to_thread(menu_service.search, FilterState(), self.store)
            except _BOOTSTRAP_ERRORS as exc:
                log.warning("bootstrap_failed", error=str(exc), kind=type(exc).__name__)
                raise BootstrapFailed(exc) from exc
            self._filter = FilterState()
            self._requested = FilterState()
            self._state = OrchestratorState.READY
            self._publish(sections)
            log.info("bootstrap_done", fetched=fetched, sections=len(sections))
            return self.projection

    async def apply_filter(self, filter_state: FilterState) -> list[Section]:
        """Reconsulta com o filtro dado, respeitando debounce e last-writer-wins.

        Pedidos superados (debounce ou resultado chegando depois de um mais novo) não
        alteram a projeção; o chamador recebe a projeção corrente.
        """
        if not self.is_ready:
            raise OrchestratorStateError(f"apply_filter requires READY, current state is {self._state.value}")
        seq = self.coalescer.issue()
        self._requested = filter_state
        if not await self.coalescer.settle(seq):
            log.debug("filter_coalesced", seq=seq)
            return self.projection

        self._state = OrchestratorState.REFRESHING
        self._inflight += 1
        try:
            sections = await asyncio.to_thread(menu_service.search, filter_state, self.store)
        except MenuCacheError as exc:
            if not self.coalescer.is_latest(seq):
                log.debug("filter_error_discarded", seq=seq, error=str(exc))
                return self.projection
            err = QueryFailed(str(exc))
            log.warning("filter_query_failed", seq=seq, error=str(exc))
            self._notify_error(err)
            raise err from exc
        finally:
            self._inflight -= 1
            if not self._inflight:
                self._state = OrchestratorState.READY

        if not self.coalescer.is_latest(seq):
            log.debug("filter_result_discarded", seq=seq, latest=self.coalescer.latest)
            return self.projection
        self._filter = filter_state
        self._publish(sections)
        log.info("filter_applied", seq=seq, text_query=filter_state.text_query,
                 categories=sorted(filter_state.active_categories), sections=len(sections))
        return self.projection

    async def resync(self) -> list[Section]:
        """Recarrega todo o cardápio da origem remota e reaplica o filtro mais recente pedido.

        Em falha mantém a projeção anterior, avisa os listeners e levanta ResyncFailed.
        """
        if not self.is_ready:
            raise OrchestratorStateError(f"resync requires READY, current state is {self._state.value}")
        try:
            await asyncio.to_thread(menu_service.resync, self.store, self.source, self.settings.menu_url)
        except _BOOTSTRAP_ERRORS as exc:
            err = ResyncFailed(exc)
            log.warning("resync_failed", error=str(exc), kind=type(exc).__name__)
            self._notify_error(err)
            raise err from exc
        # sem nova sequência: um apply_filter pendente continua valendo
        seq = self.coalescer.latest
        current = self._requested
        try:
            sections = await asyncio.to_thread(menu_service.search, current, self.store)
        except MenuCacheError as exc:
            err = QueryFailed(str(exc))
            self._notify_error(err)
            raise err from exc
        if not self.coalescer.is_latest(seq):
            log.debug("resync_result_discarded", seq=seq, latest=self.coalescer.latest)
            return self.projection
        self._filter = current
        self._publish(sections)
        log.info("resync_done", sections=len(sections))
        return self.projection
