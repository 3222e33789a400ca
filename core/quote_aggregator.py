"""
Quote request lifecycle: debounce, fetch, poll and stale-response rejection.

At most one request is authoritative at a time. Every dispatched fetch is
tagged with a monotonically increasing sequence number and its result is
applied only if that tag is still the latest one when it arrives; slower
responses for superseded requests are dropped on arrival.

Usage:
    aggregator = QuoteAggregator(BridgeApiClient())
    aggregator.submit(request)          # debounced, then polled every 30s
    await aggregator.wait_until_settled()
    state = aggregator.state
    await aggregator.close()
"""

from __future__ import annotations

import asyncio
import dataclasses
import time
from collections.abc import Callable, Sequence

from bridge_logging.logger_manager import setup_module_logger
from config.loader import get_config
from core.quote_request import QuoteRequestModel
from shared.constants import DEFAULT_DEBOUNCE_MS, DEFAULT_REFRESH_INTERVAL_SECONDS
from shared.errors import QuoteFetchError
from shared.interfaces import QuoteProvider
from shared.types import (
    Quote,
    QuoteErrorCode,
    QuoteRequest,
    QuoteSetState,
    RequestStatus,
)


class QuoteAggregator:
    """
    Owns the debounce timer, the polling loop and the current ``QuoteSetState``.

    One instance per flow. Timers and in-flight fetches are instance state, so
    concurrent flows never observe each other's requests.
    """

    def __init__(
        self,
        provider: QuoteProvider,
        model: QuoteRequestModel | None = None,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self._provider = provider
        self._model = model if model is not None else QuoteRequestModel()
        self._clock = clock if clock is not None else time.time

        quotes_timing = get_config().get_timing_config().get("quotes", {})
        self._debounce_seconds: float = (
            quotes_timing.get("debounce_ms", DEFAULT_DEBOUNCE_MS) / 1000
        )
        self._refresh_interval: float = quotes_timing.get(
            "refresh_interval_seconds", DEFAULT_REFRESH_INTERVAL_SECONDS
        )

        self._state = QuoteSetState()
        self._request: QuoteRequest | None = None
        # Status to fall back to when a dispatched fetch is abandoned
        self._idle_status: RequestStatus | None = None
        self._sequence = 0
        self._active = False

        self._debounce_task: asyncio.Task[None] | None = None
        self._poll_task: asyncio.Task[None] | None = None
        self._fetch_tasks: set[asyncio.Task[None]] = set()
        self._settled = asyncio.Event()
        self._settled.set()

        self._logger = setup_module_logger(
            "quote_aggregator", "quote_aggregator.log", module_folder="Quote_Aggregator_Logs"
        )

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def state(self) -> QuoteSetState:
        """Snapshot of the current quote set; mutating it has no effect."""
        return dataclasses.replace(self._state, quotes=list(self._state.quotes))

    @property
    def request(self) -> QuoteRequest | None:
        return self._request

    @property
    def sequence(self) -> int:
        return self._sequence

    @property
    def is_active(self) -> bool:
        return self._active

    @property
    def is_polling(self) -> bool:
        return self._poll_task is not None and not self._poll_task.done()

    @property
    def has_pending_debounce(self) -> bool:
        return self._debounce_task is not None and not self._debounce_task.done()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def submit(self, request: QuoteRequest) -> None:
        """
        Make ``request`` the authoritative request and fetch it after the
        debounce window. Invalid requests are ignored without touching state.
        """
        if not self._model.is_valid(request):
            self._logger.debug("Ignoring invalid quote request: %s", request.to_dict())
            return

        if (
            self._active
            and request == self._request
            and (self.has_pending_debounce or self.is_polling)
        ):
            self._logger.debug("Quote request unchanged, keeping current schedule")
            return

        self._cancel_timers()
        self._sequence += 1
        self._request = request
        self._active = True

        self._state = QuoteSetState(
            status=RequestStatus.LOADING,
            quotes=[],
            last_fetched_ms=self._state.last_fetched_ms,
            error_code=None,
        )
        self._idle_status = None
        self._settled.clear()

        self._debounce_task = asyncio.get_running_loop().create_task(
            self._debounced_poll(), name=f"quote_debounce_{self._sequence}"
        )
        self._logger.info(
            "Quote request submitted (seq=%d, %s -> %s)",
            self._sequence,
            request.src_chain_id,
            request.dest_chain_id,
        )

    def poll(self) -> None:
        """
        (Re)start polling the current request: fetch now, then every
        refresh interval while the flow is active and the request is valid.
        """
        request = self._request
        if not self._active or request is None or not self._model.is_valid(request):
            self._logger.debug("Polling not started: flow inactive or request invalid")
            return

        self._cancel_poll()
        self._poll_task = asyncio.get_running_loop().create_task(
            self._poll_loop(request), name=f"quote_poll_{self._sequence}"
        )

    def reset(self) -> QuoteRequest:
        """Cancel timers, drop in-flight results and restore the default state."""
        self._stop_flow()
        self._request = self._model.reset()
        self._state = QuoteSetState()
        self._idle_status = None
        self._settled.set()
        self._logger.info("Quote state reset (seq=%d)", self._sequence)
        return self._request

    def teardown(self) -> None:
        """
        Stop the flow; in-flight fetches are abandoned and their results ignored.

        A ``LOADING`` status falls back to the status the abandoned fetch replaced.
        """
        self._stop_flow()
        self._settled.set()
        self._logger.info("Quote flow torn down (seq=%d)", self._sequence)

    async def close(self) -> None:
        """Tear down and cancel any abandoned fetch tasks."""
        self.teardown()
        tasks = list(self._fetch_tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    async def wait_until_settled(self, timeout: float | None = None) -> QuoteSetState:
        """Wait until the latest dispatched fetch has been applied (or the flow stopped)."""
        await asyncio.wait_for(self._settled.wait(), timeout=timeout)
        return self.state

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------

    async def _debounced_poll(self) -> None:
        await asyncio.sleep(self._debounce_seconds)
        self._debounce_task = None
        self.poll()

    async def _poll_loop(self, request: QuoteRequest) -> None:
        while self._active and request is self._request and self._model.is_valid(request):
            self._dispatch_fetch(request)
            await asyncio.sleep(self._refresh_interval)
        self._logger.debug("Polling stopped (seq=%d)", self._sequence)

    def _dispatch_fetch(self, request: QuoteRequest) -> None:
        self._sequence += 1
        sequence = self._sequence
        if self._state.status is not RequestStatus.LOADING:
            self._idle_status = self._state.status
            self._state.status = RequestStatus.LOADING
        self._settled.clear()

        task = asyncio.get_running_loop().create_task(
            self._fetch(request, sequence), name=f"quote_fetch_{sequence}"
        )
        self._fetch_tasks.add(task)
        task.add_done_callback(self._fetch_tasks.discard)

    def _cancel_timers(self) -> None:
        if self._debounce_task is not None and not self._debounce_task.done():
            self._debounce_task.cancel()
        self._debounce_task = None
        self._cancel_poll()

    def _cancel_poll(self) -> None:
        if self._poll_task is not None and not self._poll_task.done():
            self._poll_task.cancel()
        self._poll_task = None

    def _stop_flow(self) -> None:
        self._cancel_timers()
        self._active = False
        # Invalidate anything still in flight
        self._sequence += 1
        if self._state.status is RequestStatus.LOADING:
            self._state.status = self._idle_status

    # ------------------------------------------------------------------
    # Fetch and apply
    # ------------------------------------------------------------------

    async def _fetch(self, request: QuoteRequest, sequence: int) -> None:
        try:
            quotes = await self._provider.fetch_quotes(request)
        except QuoteFetchError as exc:
            self._apply_error(sequence, exc.code, str(exc))
            return
        except Exception as exc:
            # Provider raised something unclassified; treat as transient
            self._logger.error("Unclassified quote provider failure: %s", exc, exc_info=exc)
            self._apply_error(sequence, QuoteErrorCode.NETWORK_ERROR, str(exc))
            return

        if not quotes:
            self._apply_error(sequence, QuoteErrorCode.NO_ROUTES_AVAILABLE, "empty quote set")
            return
        self._apply_quotes(sequence, quotes)

    def _is_stale(self, sequence: int) -> bool:
        if sequence != self._sequence:
            self._logger.info(
                "Discarding stale quote response (seq=%d, latest=%d)", sequence, self._sequence
            )
            return True
        return False

    def _apply_quotes(self, sequence: int, quotes: Sequence[Quote]) -> None:
        if self._is_stale(sequence):
            return
        self._state = QuoteSetState(
            status=RequestStatus.FETCHED,
            quotes=list(quotes),
            last_fetched_ms=int(self._clock() * 1000),
            error_code=None,
        )
        self._settled.set()
        self._logger.info("Quotes fetched (seq=%d, count=%d)", sequence, len(quotes))

    def _apply_error(self, sequence: int, code: QuoteErrorCode, detail: str) -> None:
        if self._is_stale(sequence):
            return
        # Previously fetched quotes stay visible until a new request is submitted
        self._state.status = RequestStatus.ERROR
        self._state.error_code = code
        self._settled.set()
        self._logger.warning("Quote fetch failed (seq=%d, code=%s): %s", sequence, code.value, detail)
