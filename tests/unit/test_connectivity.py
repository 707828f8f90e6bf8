"""Tests for the connectivity signal."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import aiohttp

from field_sync.connectivity import ConnectivitySignal


class TestTransitions:
    """Handlers fire only on offline -> online."""

    async def test_handlers_run_when_regained(self) -> None:
        signal = ConnectivitySignal(online=False)
        sync_handler = MagicMock()
        async_handler = AsyncMock()
        signal.on_online(sync_handler)
        signal.on_online(async_handler)

        await signal.set_online(True)
        await signal.wait_idle()

        assert signal.is_online is True
        sync_handler.assert_called_once()
        async_handler.assert_awaited_once()

    async def test_no_dispatch_when_already_online(self) -> None:
        signal = ConnectivitySignal(online=True)
        handler = MagicMock()
        signal.on_online(handler)

        await signal.set_online(True)
        await signal.set_online(False)

        handler.assert_not_called()
        assert signal.is_online is False

    async def test_unsubscribe(self) -> None:
        signal = ConnectivitySignal(online=False)
        handler = MagicMock()
        unsubscribe = signal.on_online(handler)
        unsubscribe()
        unsubscribe()

        await signal.set_online(True)

        handler.assert_not_called()

    async def test_failing_handler_does_not_block_others(self) -> None:
        signal = ConnectivitySignal(online=False)
        signal.on_online(MagicMock(side_effect=RuntimeError("boom")))
        survivor = MagicMock()
        signal.on_online(survivor)

        await signal.set_online(True)
        await signal.wait_idle()

        survivor.assert_called_once()

    async def test_report_returns_before_handler_finishes(self) -> None:
        signal = ConnectivitySignal(online=False)
        gate = asyncio.Event()
        finished = MagicMock()

        async def slow_sync() -> None:
            await gate.wait()
            finished()

        signal.on_online(slow_sync)

        await signal.set_online(True)

        assert signal.pending_handlers == 1
        finished.assert_not_called()
        gate.set()
        await signal.wait_idle()
        finished.assert_called_once()
        assert signal.pending_handlers == 0

    async def test_close_cancels_running_handlers(self) -> None:
        signal = ConnectivitySignal(online=False)
        signal.on_online(lambda: asyncio.Event().wait())
        await signal.set_online(True)

        await signal.close()

        assert signal.pending_handlers == 0


class TestProbe:
    """Reachability probing."""

    async def test_without_url_keeps_state(self) -> None:
        signal = ConnectivitySignal(online=False)
        assert await signal.probe() is False
        assert signal.is_online is False

    async def test_reachable_url_sets_online(self) -> None:
        signal = ConnectivitySignal(online=False, probe_url="http://probe.test/")
        handler = MagicMock()
        signal.on_online(handler)

        response = MagicMock(status=204)
        session = MagicMock()
        session.head.return_value.__aenter__.return_value = response
        session_cm = MagicMock()
        session_cm.__aenter__.return_value = session

        with patch("aiohttp.ClientSession", return_value=session_cm):
            assert await signal.probe() is True
        await signal.wait_idle()

        handler.assert_called_once()

    async def test_connection_failure_sets_offline(self) -> None:
        signal = ConnectivitySignal(online=True, probe_url="http://probe.test/")

        session = MagicMock()
        session.head.side_effect = aiohttp.ClientConnectionError("refused")
        session_cm = MagicMock()
        session_cm.__aenter__.return_value = session

        with patch("aiohttp.ClientSession", return_value=session_cm):
            assert await signal.probe() is False

        assert signal.is_online is False
