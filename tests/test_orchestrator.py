# -*- coding: utf-8 -*-

from __future__ import annotations

import asyncio
import tempfile
import threading
import unittest

from menu_cache.core.errors import (
    BootstrapFailed, OrchestratorStateError, QueryFailed, RemoteMalformed, RemoteUnavailable,
    ResyncFailed, StorageUnavailable, StorageWriteError,
)
from menu_cache.domain.orchestrator import CacheOrchestrator, OrchestratorState
from menu_cache.ports.interfaces import FilterState, MenuQuery
from menu_cache.repo.menu_store import MenuStore

from support import FakeSource, make_settings, menu_records, record, sqlite_factory


class RecordingStore(MenuStore):
    """MenuStore real que registra consultas, pode segurar um texto e falhar sob demanda."""

    def __init__(self, session_factory, gate_text: str | None = None) -> None:
        super().__init__(session_factory)
        self.queries: list[MenuQuery | None] = []
        self.gate_text = gate_text
        self.entered = threading.Event()
        self.release = threading.Event()
        self.fail_queries = False

    def query(self, predicate=None):
        self.queries.append(predicate)
        if self.fail_queries:
            raise StorageUnavailable("disk gone")
        if predicate is not None and self.gate_text is not None and predicate.text == self.gate_text:
            self.entered.set()
            self.release.wait(5)
        return super().query(predicate)


class ReadOnlyStore(MenuStore):
    """Store cujo replace_all sempre falha, como um disco cheio."""

    def replace_all(self, records):
        raise StorageWriteError("database or disk is full")


def _ids(sections) -> set[int]:
    return {item.id for s in sections for item in s.items}


class TestCacheOrchestrator(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.factory = sqlite_factory(self._tmp.name)
        self.settings = make_settings(self._tmp.name)

    def tearDown(self) -> None:
        self.factory.kw["bind"].dispose()
        self._tmp.cleanup()

    def _orchestrator(self, store=None, source=None, **settings) -> CacheOrchestrator:
        store = store or RecordingStore(self.factory)
        source = source or FakeSource()
        cfg = make_settings(self._tmp.name, **settings) if settings else self.settings
        return CacheOrchestrator(store=store, source=source, settings=cfg)

    async def test_bootstrap_populates_empty_store_and_becomes_ready(self) -> None:
        source = FakeSource()
        orch = self._orchestrator(source=source)
        self.assertEqual(orch.state, OrchestratorState.UNINITIALIZED)

        sections = await orch.bootstrap()

        self.assertEqual(orch.state, OrchestratorState.READY)
        self.assertEqual(source.calls, 1)
        self.assertEqual([s.name for s in sections], ["Desserts", "Mains", "Starters"])
        self.assertEqual(_ids(sections), {r.id for r in menu_records()})
        self.assertEqual(orch.filter_state, FilterState())

    async def test_second_bootstrap_makes_no_network_calls(self) -> None:
        source = FakeSource()
        orch = self._orchestrator(source=source)
        await orch.bootstrap()
        await orch.bootstrap()
        self.assertEqual(source.calls, 1)

    async def test_bootstrap_on_populated_store_skips_fetch(self) -> None:
        store = RecordingStore(self.factory)
        store.initialize()
        store.replace_all([record(1, "Lemon Cake", "desserts")])
        source = FakeSource()

        sections = await self._orchestrator(store=store, source=source).bootstrap()

        self.assertEqual(source.calls, 0)
        self.assertEqual(_ids(sections), {1})

    async def test_bootstrap_failure_is_retryable(self) -> None:
        source = FakeSource(error=RemoteUnavailable("offline"))
        orch = self._orchestrator(source=source)

        with self.assertRaises(BootstrapFailed) as ctx:
            await orch.bootstrap()
        self.assertIsInstance(ctx.exception.cause, RemoteUnavailable)
        self.assertEqual(orch.state, OrchestratorState.BOOTSTRAPPING)
        self.assertEqual(orch.projection, [])

        source.error = None
        await orch.bootstrap()
        self.assertEqual(orch.state, OrchestratorState.READY)
        self.assertEqual(source.calls, 2)

    async def test_apply_filter_requires_ready(self) -> None:
        orch = self._orchestrator()
        with self.assertRaises(OrchestratorStateError):
            await orch.apply_filter(FilterState(text_query="salad"))

    async def test_apply_filter_publishes_projection(self) -> None:
        orch = self._orchestrator()
        received = []
        orch.subscribe(received.append)
        await orch.bootstrap()

        sections = await orch.apply_filter(FilterState(text_query="a", active_categories=frozenset({"starters"})))

        self.assertEqual([s.name for s in sections], ["Starters"])
        self.assertEqual(_ids(sections), {1, 2})
        self.assertEqual(len(received), 2)
        self.assertEqual(received[-1], sections)
        self.assertEqual(orch.state, OrchestratorState.READY)

    async def test_unsubscribe_stops_notifications(self) -> None:
        orch = self._orchestrator()
        received = []
        unsubscribe = orch.subscribe(received.append)
        await orch.bootstrap()
        unsubscribe()
        await orch.apply_filter(FilterState(text_query="pasta"))
        self.assertEqual(len(received), 1)

    async def test_late_result_of_superseded_query_is_discarded(self) -> None:
        store = RecordingStore(self.factory, gate_text="lemon")
        orch = self._orchestrator(store=store)
        await orch.bootstrap()

        first = asyncio.create_task(orch.apply_filter(FilterState(text_query="lemon")))
        self.assertTrue(await asyncio.to_thread(store.entered.wait, 5))
        self.assertEqual(orch.state, OrchestratorState.REFRESHING)
        second = await orch.apply_filter(FilterState(text_query="salad"))
        store.release.set()
        first_result = await first

        self.assertEqual(_ids(second), {1})
        self.assertEqual(_ids(orch.projection), {1})
        self.assertEqual(first_result, orch.projection)
        self.assertEqual(orch.filter_state.text_query, "salad")
        self.assertEqual(orch.state, OrchestratorState.READY)

    async def test_debounce_runs_only_last_filter(self) -> None:
        store = RecordingStore(self.factory)
        orch = self._orchestrator(store=store, debounce_ms=50)
        await orch.bootstrap()
        store.queries.clear()

        first = asyncio.create_task(orch.apply_filter(FilterState(text_query="lemon")))
        await asyncio.sleep(0)
        await orch.apply_filter(FilterState(text_query="pasta"))
        await first

        self.assertEqual([q.text for q in store.queries], ["pasta"])
        self.assertEqual(_ids(orch.projection), {4})

    async def test_query_failure_keeps_last_good_projection(self) -> None:
        store = RecordingStore(self.factory)
        orch = self._orchestrator(store=store)
        notices = []
        orch.on_error(notices.append)
        before = await orch.bootstrap()

        store.fail_queries = True
        with self.assertRaises(QueryFailed):
            await orch.apply_filter(FilterState(text_query="salad"))

        self.assertEqual(orch.projection, before)
        self.assertEqual(len(notices), 1)
        self.assertIsInstance(notices[0], QueryFailed)
        self.assertEqual(orch.state, OrchestratorState.READY)

    async def test_failing_listener_does_not_break_publication(self) -> None:
        orch = self._orchestrator()
        received = []

        def broken(_sections) -> None:
            raise RuntimeError("render crashed")

        orch.subscribe(broken)
        orch.subscribe(received.append)
        await orch.bootstrap()
        self.assertEqual(len(received), 1)

    async def test_resync_replaces_contents_and_keeps_filter(self) -> None:
        source = FakeSource()
        orch = self._orchestrator(source=source)
        await orch.bootstrap()
        await orch.apply_filter(FilterState(active_categories=frozenset({"mains"})))

        source.records = [record(1, "Risotto", "mains"), record(2, "Tiramisu", "desserts")]
        sections = await orch.resync()

        self.assertEqual(source.calls, 2)
        self.assertEqual([s.name for s in sections], ["Mains"])
        self.assertEqual([r.name for r in sections[0].items], ["Risotto"])

    async def test_resync_failure_keeps_previous_projection(self) -> None:
        source = FakeSource()
        orch = self._orchestrator(source=source)
        before = await orch.bootstrap()
        notices = []
        orch.on_error(notices.append)

        source.error = RemoteUnavailable("offline")
        with self.assertRaises(ResyncFailed):
            await orch.resync()

        self.assertEqual(orch.projection, before)
        self.assertEqual(len(notices), 1)

    async def test_resync_requires_ready(self) -> None:
        with self.assertRaises(OrchestratorStateError):
            await self._orchestrator().resync()

    async def test_resync_keeps_pending_debounced_filter(self) -> None:
        orch = self._orchestrator(debounce_ms=100)
        await orch.bootstrap()

        pending = asyncio.create_task(orch.apply_filter(FilterState(text_query="pasta")))
        await asyncio.sleep(0)
        await orch.resync()
        await pending

        self.assertEqual(orch.filter_state.text_query, "pasta")
        self.assertEqual(_ids(orch.projection), {4})

    async def test_resync_during_pending_filter_publishes_requested_filter(self) -> None:
        orch = self._orchestrator(debounce_ms=100)
        await orch.bootstrap()
        received = []
        orch.subscribe(received.append)

        pending = asyncio.create_task(orch.apply_filter(FilterState(text_query="salad")))
        await asyncio.sleep(0)
        sections = await orch.resync()
        await pending

        self.assertEqual(_ids(sections), {1})
        self.assertTrue(all(_ids(s) == {1} for s in received))

    async def test_empty_remote_menu_fails_bootstrap_and_is_retryable(self) -> None:
        source = FakeSource(records=[])
        orch = self._orchestrator(source=source)

        with self.assertRaises(BootstrapFailed) as ctx:
            await orch.bootstrap()
        self.assertIsInstance(ctx.exception.cause, RemoteMalformed)
        self.assertEqual(orch.state, OrchestratorState.BOOTSTRAPPING)
        self.assertEqual(orch.projection, [])

        source.records = menu_records()
        await orch.bootstrap()
        self.assertEqual(orch.state, OrchestratorState.READY)
        self.assertEqual(source.calls, 2)
        self.assertEqual(_ids(orch.projection), {r.id for r in menu_records()})

    async def test_empty_remote_menu_on_resync_keeps_contents(self) -> None:
        source = FakeSource()
        orch = self._orchestrator(source=source)
        before = await orch.bootstrap()

        source.records = []
        with self.assertRaises(ResyncFailed) as ctx:
            await orch.resync()

        self.assertIsInstance(ctx.exception.cause, RemoteMalformed)
        self.assertEqual(orch.projection, before)
        self.assertEqual(orch.store.count(), len(menu_records()))

    async def test_malformed_remote_menu_is_wrapped_in_bootstrap_failed(self) -> None:
        orch = self._orchestrator(source=FakeSource(error=RemoteMalformed("expected a JSON array under 'menu'")))
        with self.assertRaises(BootstrapFailed) as ctx:
            await orch.bootstrap()
        self.assertIsInstance(ctx.exception.cause, RemoteMalformed)
        self.assertEqual(orch.state, OrchestratorState.BOOTSTRAPPING)

    async def test_store_write_error_is_wrapped_in_bootstrap_failed(self) -> None:
        store = ReadOnlyStore(self.factory)
        orch = self._orchestrator(store=store)
        with self.assertRaises(BootstrapFailed) as ctx:
            await orch.bootstrap()
        self.assertIsInstance(ctx.exception.cause, StorageWriteError)
        self.assertEqual(orch.state, OrchestratorState.BOOTSTRAPPING)
        self.assertTrue(store.is_empty())

    async def test_unreachable_database_is_wrapped_in_bootstrap_failed(self) -> None:
        factory = sqlite_factory(f"{self._tmp.name}/missing/dir")
        source = FakeSource()
        orch = self._orchestrator(store=RecordingStore(factory), source=source)
        try:
            with self.assertRaises(BootstrapFailed) as ctx:
                await orch.bootstrap()
        finally:
            factory.kw["bind"].dispose()
        self.assertIsInstance(ctx.exception.cause, StorageUnavailable)
        self.assertEqual(orch.state, OrchestratorState.BOOTSTRAPPING)
        self.assertEqual(source.calls, 0)


if __name__ == "__main__":
    unittest.main()
