import asyncio
import threading

import pytest

from app.services.price_refresher import PriceRefresher
from app.services.valuation_service import PriceQuote


def _lookup(price):
    return {"bitcoin": PriceQuote(current_price=price)}


@pytest.mark.asyncio
async def test_refresh_replaces_snapshot():
    prices = iter([_lookup(1.0), {"ethereum": PriceQuote(current_price=2.0)}])
    refresher = PriceRefresher(lambda: next(prices))

    assert await refresher.refresh() is True
    assert refresher.snapshot == _lookup(1.0)
    first_refreshed_at = refresher.refreshed_at

    assert await refresher.refresh() is True
    # Replaced wholesale, never merged
    assert refresher.snapshot == {"ethereum": PriceQuote(current_price=2.0)}
    assert refresher.refreshed_at >= first_refreshed_at


@pytest.mark.asyncio
async def test_failed_refresh_keeps_previous_snapshot():
    calls = []

    def fetch():
        calls.append(1)
        if len(calls) > 1:
            raise RuntimeError("upstream down")
        return _lookup(1.0)

    refresher = PriceRefresher(fetch)
    await refresher.refresh()

    assert await refresher.refresh() is False
    assert refresher.snapshot == _lookup(1.0)


@pytest.mark.asyncio
async def test_tick_skipped_while_refresh_in_flight():
    release = threading.Event()
    calls = []

    def slow_fetch():
        calls.append(1)
        release.wait(timeout=5)
        return _lookup(1.0)

    refresher = PriceRefresher(slow_fetch)
    first = asyncio.create_task(refresher.refresh())
    await asyncio.sleep(0.05)

    assert await refresher.refresh() is False

    release.set()
    assert await first is True
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_result_not_applied_after_stop():
    release = threading.Event()

    def slow_fetch():
        release.wait(timeout=5)
        return _lookup(1.0)

    refresher = PriceRefresher(slow_fetch, interval_seconds=60)
    refresher.start()
    await asyncio.sleep(0.05)
    assert refresher.is_running

    stop = asyncio.create_task(refresher.stop())
    await asyncio.sleep(0)
    release.set()
    await stop

    assert refresher.is_running is False
    assert refresher.snapshot == {}
    assert refresher.refreshed_at is None


@pytest.mark.asyncio
async def test_loop_refreshes_on_interval():
    calls = []

    def fetch():
        calls.append(1)
        return _lookup(float(len(calls)))

    refresher = PriceRefresher(fetch, interval_seconds=0.01)
    refresher.start()
    await asyncio.sleep(0.1)
    await refresher.stop()

    assert len(calls) >= 2
    assert refresher.refreshed_at is not None
    assert refresher.is_running is False
