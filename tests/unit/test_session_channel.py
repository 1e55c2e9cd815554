"""Testes do ResultChannel e do FinalizeGuard."""

from __future__ import annotations

import asyncio
import threading

import pytest

from voxstream.session.channel import ResultChannel
from voxstream.session.guard import FinalizeGuard


async def _collect(channel: ResultChannel) -> list[str]:
    return [text async for text in channel]


class TestResultChannel:
    async def test_delivers_in_order_then_ends_on_close(self) -> None:
        channel = ResultChannel()
        consumer = asyncio.create_task(_collect(channel))

        await channel.send("um")
        await channel.send("dois")
        channel.close()

        assert await consumer == ["um", "dois"]
        assert channel.sent == 2
        assert channel.is_closed
        assert channel.error is None

    async def test_send_waits_for_consumer(self) -> None:
        channel = ResultChannel()

        send = asyncio.create_task(channel.send("texto"))
        await asyncio.sleep(0.01)
        assert not send.done()

        iterator = channel.__aiter__()
        assert await iterator.__anext__() == "texto"
        # Pedir o proximo item confirma a entrega do anterior
        next_item = asyncio.create_task(iterator.__anext__())
        await asyncio.wait_for(send, timeout=1.0)

        channel.close()
        with pytest.raises(StopAsyncIteration):
            await next_item

    async def test_close_with_error_is_recorded(self) -> None:
        channel = ResultChannel()
        cause = RuntimeError("boom")
        channel.close(cause)
        channel.close(ValueError("ignored"))

        assert channel.error is cause
        assert await _collect(channel) == []

    async def test_send_after_close_raises(self) -> None:
        channel = ResultChannel()
        channel.close()
        with pytest.raises(RuntimeError):
            await channel.send("tarde")


class TestFinalizeGuard:
    def test_first_claim_wins(self) -> None:
        guard = FinalizeGuard()
        assert guard.claimed is False
        assert guard.claim("end") is True
        assert guard.claim("error") is False
        assert guard.claimed is True
        assert guard.claimed_by == "end"

    def test_exactly_one_thread_wins(self) -> None:
        guard = FinalizeGuard()
        wins: list[str] = []
        barrier = threading.Barrier(8)

        def _try(name: str) -> None:
            barrier.wait()
            if guard.claim(name):
                wins.append(name)

        threads = [threading.Thread(target=_try, args=(f"t{i}",)) for i in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(wins) == 1
        assert guard.claimed_by == wins[0]
