import heapq
import itertools
from typing import Callable, List, Tuple


class OverlayScheduler:
    """Run callbacks after a delay on Socket.IO background tasks.

    With ``deferred=True`` (TESTING without ENABLE_SCHEDULER_IN_TESTS)
    nothing sleeps: callbacks queue up and ``run_pending`` fires them in
    due-time order, so tests control exactly when a timer lands.
    """

    def __init__(self, socketio, logger, deferred: bool = False):
        self.socketio = socketio
        self.logger = logger
        self.deferred = deferred
        self._seq = itertools.count()
        self._clock_ms = 0
        self._queue: List[Tuple[int, int, Callable, tuple]] = []

    def call_later(self, delay_ms: int, fn: Callable, *args) -> None:
        if self.deferred:
            heapq.heappush(self._queue, (self._clock_ms + delay_ms, next(self._seq), fn, args))
            return

        def _runner():
            self.socketio.sleep(delay_ms / 1000.0)
            fn(*args)

        self.logger.debug(f"[timer-set] fn={getattr(fn, '__name__', fn)} delay={delay_ms}ms")
        self.socketio.start_background_task(_runner)

    @property
    def pending(self) -> int:
        return len(self._queue)

    def run_pending(self, until_ms: int = None) -> int:
        """Fire queued callbacks, oldest deadline first.

        ``until_ms`` limits firing to callbacks due within that many
        milliseconds of the current virtual clock. Returns how many ran.
        """
        limit = None if until_ms is None else self._clock_ms + until_ms
        fired = 0
        while self._queue and (limit is None or self._queue[0][0] <= limit):
            due, _, fn, args = heapq.heappop(self._queue)
            self._clock_ms = max(self._clock_ms, due)
            fn(*args)
            fired += 1
        if limit is not None:
            self._clock_ms = max(self._clock_ms, limit)
        return fired
