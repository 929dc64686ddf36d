import asyncio, logging, time
from typing import Any, Awaitable, Callable, Dict, List, Optional

import aiohttp

from .aggregator import ResultAggregator
from .classifier import classify
from .models import ProbeOutcome, ProbeState, RunResult, ScanConfig

log = logging.getLogger("dirprobe.scanner")

EventCb = Callable[[Dict[str, Any]], Awaitable[None]]


class ProbeCancelled(Exception):
    pass


def build_url(base: str, candidate: str) -> str:
    return base.rstrip("/") + "/" + candidate


class DirEnumerator:
    """
    Probes every candidate once with a GET, keeping at most `threads`
    requests in flight. Cancellation is cooperative: workers stop taking
    candidates once the event is set, and requests already in flight are
    raced against the same event.
    """

    def __init__(self, config: ScanConfig):
        self.config = config
        self.base = config.url.rstrip("/")
        self.timeout = aiohttp.ClientTimeout(total=config.timeout)
        self.headers = {"User-Agent": config.user_agent}
        self.interesting = set(config.status_codes) if config.status_codes else None
        self.aggregator = ResultAggregator()
        self.processed = 0
        self.total = 0
        self.interrupted = 0

    async def _request(self, session: aiohttp.ClientSession, url: str) -> int:
        async with session.get(url, allow_redirects=self.config.follow_redirects) as r:
            return r.status

    async def _fetch_status(self, session: aiohttp.ClientSession, url: str, cancel: asyncio.Event) -> int:
        request = asyncio.ensure_future(self._request(session, url))
        waiter = asyncio.ensure_future(cancel.wait())
        try:
            done, _ = await asyncio.wait({request, waiter}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            request.cancel()
            raise
        finally:
            waiter.cancel()
        if request not in done:
            request.cancel()
            raise ProbeCancelled()
        return request.result()

    async def probe(self, session: aiohttp.ClientSession, candidate: str, cancel: asyncio.Event) -> ProbeOutcome:
        url = build_url(self.base, candidate)
        try:
            status = await self._fetch_status(session, url, cancel)
        except ProbeCancelled:
            return ProbeOutcome(candidate=candidate, url=url, state=ProbeState.CANCELLED)
        except asyncio.TimeoutError:
            log.debug("Timeout: %s", url)
            return ProbeOutcome(candidate=candidate, url=url, state=ProbeState.FAILED, error="timeout")
        except aiohttp.ClientError as e:
            log.debug("Request failed: %s (%s)", url, e)
            return ProbeOutcome(candidate=candidate, url=url, state=ProbeState.FAILED, error=str(e) or type(e).__name__)
        except Exception as e:
            log.debug("Unexpected error probing %s", url, exc_info=True)
            return ProbeOutcome(candidate=candidate, url=url, state=ProbeState.FAILED, error=f"{type(e).__name__}: {e}")
        return ProbeOutcome(
            candidate=candidate,
            url=url,
            state=ProbeState.COMPLETED,
            status=status,
            classification=classify(status, self.interesting),
        )

    async def _emit(self, on_event: Optional[EventCb], ev: Dict[str, Any]):
        if on_event is None:
            return
        try:
            await on_event(ev)
        except Exception:
            log.exception("Event listener failed on %s event", ev.get("type"))

    async def _record(self, outcome: ProbeOutcome, on_event: Optional[EventCb]):
        if outcome.reportable:
            self.aggregator.add(outcome)
            await self._emit(on_event, {"type": "found", "item": outcome.model_dump(mode="json")})
        elif outcome.state is ProbeState.FAILED:
            await self._emit(on_event, {"type": "error", "candidate": outcome.candidate, "message": outcome.error})
        elif outcome.state is ProbeState.CANCELLED:
            self.interrupted += 1
        self.processed += 1
        await self._emit(on_event, {"type": "progress", "processed": self.processed, "total": self.total})

    async def _worker(self, session, queue: asyncio.Queue, cancel: asyncio.Event, on_event):
        while not cancel.is_set():
            try:
                candidate = queue.get_nowait()
            except asyncio.QueueEmpty:
                return
            outcome = await self.probe(session, candidate, cancel)
            await self._record(outcome, on_event)

    async def run(
        self,
        candidates: List[str],
        on_event: Optional[EventCb] = None,
        cancel: Optional[asyncio.Event] = None,
    ) -> RunResult:
        if cancel is None:
            cancel = asyncio.Event()
        self.total = len(candidates)
        started = time.perf_counter()

        queue: asyncio.Queue = asyncio.Queue()
        for c in candidates:
            queue.put_nowait(c)

        workers = min(self.config.threads, self.total)
        if workers:
            async with aiohttp.ClientSession(timeout=self.timeout, headers=self.headers) as session:
                await asyncio.gather(*(self._worker(session, queue, cancel, on_event) for _ in range(workers)))

        elapsed = time.perf_counter() - started
        result = self.aggregator.finalize(
            processed=self.processed,
            total=self.total,
            elapsed=elapsed,
            # a late interrupt after the last probe finished cancels nothing
            cancelled=cancel.is_set() and (self.processed < self.total or self.interrupted > 0),
        )
        log.info("Enumeration done: processed=%d/%d, found=%d", result.processed, result.total, len(result.outcomes))
        return result
