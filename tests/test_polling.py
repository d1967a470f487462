import asyncio
from unittest.mock import AsyncMock, MagicMock

from artha_ai.analysts.models import AnalysisResult, LivePrice
from artha_ai.utils.polling import LiveQuote, PollingController, PollState, poll_due


def analysis(symbol: str = "TCS.NS", price: float = 3900.0) -> AnalysisResult:
    return AnalysisResult(symbol=symbol, company_name="Tata Consultancy Services", current_price=price)


class TestPollDue:

    def test_waits_for_the_full_interval(self):
        assert poll_due(last_poll=100.0, now=110.0, interval=lambda: 30) is False
        assert poll_due(last_poll=100.0, now=130.0, interval=lambda: 30) is True

    def test_tick_firing_slightly_early_still_polls(self):
        assert poll_due(last_poll=100.0, now=129.5, interval=lambda: 30) is True

    def test_market_open_is_picked_up_on_next_tick(self):
        # Closed at the last poll, open by the next 30 s tick
        intervals = iter([900, 30])
        interval = lambda: next(intervals)
        assert poll_due(last_poll=0.0, now=30.0, interval=interval) is False
        assert poll_due(last_poll=0.0, now=60.0, interval=interval) is True

    def test_market_close_stretches_the_wait(self):
        assert poll_due(last_poll=0.0, now=60.0, interval=lambda: 900) is False
        assert poll_due(last_poll=0.0, now=900.0, interval=lambda: 900) is True


class TestLiveQuote:

    def test_reset_seeds_from_analysis(self):
        quote = LiveQuote()
        quote.reset(analysis())
        assert (quote.symbol, quote.price, quote.change) == ("TCS.NS", 3900.0, None)

        quote.reset()
        assert (quote.symbol, quote.price, quote.change) == (None, None, None)

    def test_apply_updates_price(self):
        quote = LiveQuote()
        quote.reset(analysis())
        assert quote.apply(LivePrice(price=3925.5, change=0.65)) is True
        assert (quote.price, quote.change) == (3925.5, 0.65)

    def test_zero_price_is_ignored(self):
        quote = LiveQuote()
        quote.reset(analysis())
        assert quote.apply(LivePrice.zero()) is False
        assert quote.price == 3900.0
        assert quote.apply(LivePrice(price=-1, change=2)) is False
        assert quote.change is None


class TestPollingController:

    async def test_start_and_stop_transitions(self):
        controller = PollingController(AsyncMock(), interval=lambda: 60)
        assert controller.state is PollState.IDLE

        controller.start(analysis())
        assert controller.state is PollState.POLLING
        assert controller.quote.price == 3900.0
        assert controller.has_pending_poll

        controller.stop()
        assert controller.state is PollState.IDLE
        assert controller.quote.symbol is None
        assert not controller.has_pending_poll

    async def test_poll_once_applies_update(self):
        fetch = AsyncMock(return_value=LivePrice(price=3950.0, change=1.2))
        on_update = MagicMock()
        controller = PollingController(fetch, on_update=on_update, interval=lambda: 60)
        controller.start(analysis())

        assert await controller.poll_once() is True

        fetch.assert_awaited_once_with("TCS.NS")
        assert controller.quote.price == 3950.0
        on_update.assert_called_once_with(controller.quote)
        controller.stop()

    async def test_degraded_poll_keeps_previous_price(self):
        on_update = MagicMock()
        controller = PollingController(AsyncMock(return_value=LivePrice.zero()), on_update=on_update, interval=lambda: 60)
        controller.start(analysis())

        assert await controller.poll_once() is False
        assert controller.quote.price == 3900.0
        on_update.assert_not_called()
        controller.stop()

    async def test_poll_once_while_idle_does_nothing(self):
        fetch = AsyncMock()
        controller = PollingController(fetch)
        assert await controller.poll_once() is False
        fetch.assert_not_awaited()

    async def test_timer_keeps_polling_and_reevaluates_interval(self):
        fetch = AsyncMock(return_value=LivePrice(price=3950.0, change=1.2))
        interval = MagicMock(return_value=0.01)
        controller = PollingController(fetch, interval=interval)

        controller.start(analysis())
        await asyncio.sleep(0.2)
        controller.stop()

        assert fetch.await_count >= 2
        # One interval lookup for the first timer plus one after every poll
        assert interval.call_count >= fetch.await_count

    async def test_no_poll_fires_after_stop(self):
        fetch = AsyncMock(return_value=LivePrice(price=3950.0, change=1.2))
        controller = PollingController(fetch, interval=lambda: 0.01)

        controller.start(analysis())
        await asyncio.sleep(0.05)
        controller.stop()
        polls = fetch.await_count
        await asyncio.sleep(0.05)

        assert fetch.await_count == polls

    async def test_restart_cancels_previous_timer(self):
        controller = PollingController(AsyncMock(), interval=lambda: 60)
        controller.start(analysis("TCS.NS"))
        first_timer = controller._timer

        controller.start(analysis("INFY.NS", 1500.0))
        await asyncio.sleep(0.01)

        assert first_timer.cancelled()
        assert controller.has_pending_poll
        assert controller.quote.symbol == "INFY.NS"
        controller.stop()

    async def test_polls_never_overlap(self):
        in_flight = 0
        max_in_flight = 0

        async def slow_fetch(symbol):
            nonlocal in_flight, max_in_flight
            in_flight += 1
            max_in_flight = max(max_in_flight, in_flight)
            await asyncio.sleep(0.02)
            in_flight -= 1
            return LivePrice(price=3950.0, change=0.1)

        controller = PollingController(slow_fetch, interval=lambda: 0)
        controller.start(analysis())
        await asyncio.sleep(0.15)
        controller.stop()

        assert max_in_flight == 1

    async def test_result_arriving_after_stop_is_dropped(self):
        release = asyncio.Event()

        async def blocked_fetch(symbol):
            await release.wait()
            return LivePrice(price=4000.0, change=2.0)

        on_update = MagicMock()
        controller = PollingController(blocked_fetch, on_update=on_update, interval=lambda: 60)
        controller.start(analysis())

        poll = asyncio.create_task(controller.poll_once())
        await asyncio.sleep(0)
        controller.stop()
        release.set()

        assert await poll is False
        assert controller.quote.price is None
        on_update.assert_not_called()
