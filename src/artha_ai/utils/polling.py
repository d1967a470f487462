import asyncio
from enum import Enum
from typing import Awaitable, Callable, Optional
from artha_ai.analysts.models import AnalysisResult, LivePrice
from artha_ai.tools.market_hours import poll_interval
from artha_ai.utils.logging_config import logger


class PollState(str, Enum):
    IDLE = "idle"
    POLLING = "polling"


class LiveQuote:
    """Price and change shown next to the current analysis."""

    def __init__(self):
        self.symbol: Optional[str] = None
        self.price: Optional[float] = None
        self.change: Optional[float] = None

    def reset(self, analysis: Optional[AnalysisResult] = None):
        self.symbol = analysis.symbol if analysis else None
        self.price = analysis.current_price if analysis else None
        self.change = None

    def apply(self, update: LivePrice) -> bool:
        """Take a live price update; zero or negative prices are ignored."""
        if update.price <= 0:
            return False
        self.price = update.price
        self.change = update.change
        return True


def poll_due(last_poll: float, now: float, interval: Callable[[], float] = poll_interval) -> bool:
    """
    Whether a price poll is due on a fixed-tick timer.

    For hosts that can only re-run code on a constant tick: the tick runs at
    the shortest interval and this gate compares elapsed time against a
    freshly evaluated interval, so a market open or close takes effect on
    the next tick. One second of slack absorbs a tick firing early.
    """
    return now - last_poll >= interval() - 1


class PollingController:
    """
    Refreshes the price of the analysis on screen.

    Idle until start() is called with a finished analysis, then polls on a
    timer: every completed poll schedules the next one using a freshly
    evaluated interval, so crossing market open or close is picked up on the
    next cycle. At most one timer task is alive at any time.

    Args:
        fetch_price: Coroutine returning a LivePrice for a symbol
        on_update: Called with the quote after every applied update
        interval: Returns seconds until the next poll
    """

    def __init__(
        self,
        fetch_price: Callable[[str], Awaitable[LivePrice]],
        on_update: Optional[Callable[[LiveQuote], None]] = None,
        interval: Callable[[], float] = poll_interval,
    ):
        self.fetch_price = fetch_price
        self.on_update = on_update
        self.interval = interval
        self.quote = LiveQuote()
        self.state = PollState.IDLE
        self.refreshing = False
        self._timer: Optional[asyncio.Task] = None

    @property
    def has_pending_poll(self) -> bool:
        return self._timer is not None and not self._timer.done()

    def start(self, analysis: AnalysisResult):
        """Idle -> Polling for a freshly completed analysis."""
        self._cancel_timer()
        self.quote.reset(analysis)
        self.state = PollState.POLLING
        logger.info(f"Started live price polling for {analysis.symbol}")
        self._schedule()

    def stop(self):
        """Polling -> Idle; used on clear, on a new search and on teardown."""
        self._cancel_timer()
        if self.state == PollState.POLLING:
            logger.info(f"Stopped live price polling for {self.quote.symbol}")
        self.state = PollState.IDLE
        self.refreshing = False
        self.quote.reset()

    async def poll_once(self) -> bool:
        """Fetch one price update and apply it. Returns True if the quote changed."""
        if self.state != PollState.POLLING or not self.quote.symbol:
            return False

        symbol = self.quote.symbol
        self.refreshing = True
        try:
            update = await self.fetch_price(symbol)
        finally:
            self.refreshing = False

        # The analysis may have been cleared while the request was in flight
        if self.state != PollState.POLLING or self.quote.symbol != symbol:
            return False
        applied = self.quote.apply(update)
        if applied and self.on_update:
            self.on_update(self.quote)
        return applied

    def _schedule(self):
        delay = self.interval()
        logger.debug(f"Next price poll for {self.quote.symbol} in {delay}s")
        self._timer = asyncio.get_running_loop().create_task(self._run_after(delay))

    async def _run_after(self, delay: float):
        await asyncio.sleep(delay)
        try:
            await self.poll_once()
        except Exception as e:
            logger.warning(f"Price poll for {self.quote.symbol} failed: {e}")
        # Only the live timer reschedules; start() may have replaced it meanwhile
        if self.state == PollState.POLLING and self._timer is asyncio.current_task():
            self._schedule()

    def _cancel_timer(self):
        timer, self._timer = self._timer, None
        if timer is None or timer.done():
            return
        try:
            current = asyncio.current_task()
        except RuntimeError:
            current = None
        # A poll that stops the controller from its own callback must not cancel itself
        if timer is not current:
            timer.cancel()
