#!/usr/bin/env python3
"""
bwstat Sample Stream

Drives the sampling loop for one bandwidth query.

Lifecycle:
    INIT -> SAMPLING -> (WAITING <-> SAMPLING)* -> TERMINATED

INIT checks once that the metering subsystem can answer at all. Each pass
through SAMPLING takes one sample and hands it downstream. Single-shot
streams terminate after the first sample; polling streams wait for the
interval or the cancellation signal, whichever comes first, and either
sample again or terminate.

Two ways to consume a stream:

    # Push samples to a callback in the calling thread
    SampleStream(reporter, target, poll, cancel).run(print)

    # Sample on a background thread and iterate as samples arrive.
    # The producer takes the next sample only after the previous one was
    # received; iterate to the end or close the stream to release it.
    with SampleStream(reporter, target, poll, cancel).start() as samples:
        for sample in samples:
            print(sample)
"""

import queue
import threading
import logging
from typing import Any, Callable, Iterator, Optional

from ..core.constants import DELIVERY_POLL_INTERVAL
from ..core.exceptions import NotOperational
from ..core.types import (
    BandwidthSample,
    PollConfig,
    Target,
    TotalsTarget,
    PeerTarget,
    ProtocolTarget,
    StreamState,
)
from ..duration import format_duration
from ..metering.reporter import Reporter

logger = logging.getLogger("bwstat")

# End-of-stream marker
_END = object()


class SampleStream:
    """
    Single-shot or polling sequence of bandwidth samples for one target.

    A stream is used once: call either ``run()`` or ``start()``.
    """

    def __init__(self, reporter: Reporter, target: Target, poll: PollConfig,
                 cancel: Optional[threading.Event] = None):
        """
        Args:
            reporter: Metering subsystem to read from
            target: Resolved query target
            poll: Validated polling configuration
            cancel: Cancellation signal scoped to this request
        """
        self.reporter = reporter
        self.target = target
        self.poll = poll
        self.cancel = cancel if cancel is not None else threading.Event()

        self.state = StreamState.INIT
        self.samples_emitted = 0

        self._queue: Optional[queue.Queue] = None
        self._thread: Optional[threading.Thread] = None
        self._detached = threading.Event()
        self._taken = threading.Event()
        self._error: Optional[BaseException] = None
        self._used = False

    # =========================================================================
    # STATE
    # =========================================================================

    def _set_state(self, state: StreamState):
        if state is not self.state:
            logger.debug(f"Bandwidth stream [{self.target.describe()}]: "
                         f"{self.state.value} -> {state.value}")
            self.state = state

    def _claim(self):
        if self._used:
            raise RuntimeError("sample stream already started")
        self._used = True

    def _check_operational(self):
        if not self.reporter.is_operational():
            self._set_state(StreamState.TERMINATED)
            raise NotOperational()

    # =========================================================================
    # SAMPLING LOOP
    # =========================================================================

    def _take(self) -> BandwidthSample:
        target = self.target
        if isinstance(target, PeerTarget):
            return self.reporter.get_for_peer(target.peer_id)
        if isinstance(target, ProtocolTarget):
            return self.reporter.get_for_protocol(target.protocol)
        if isinstance(target, TotalsTarget):
            return self.reporter.get_totals()
        raise TypeError(f"unknown bandwidth target: {target!r}")

    def _loop(self, deliver: Callable[[BandwidthSample], bool]):
        while True:
            self._set_state(StreamState.SAMPLING)
            sample = self._take()
            if not deliver(sample):
                return
            self.samples_emitted += 1

            if not self.poll.enabled:
                return

            self._set_state(StreamState.WAITING)
            if self.cancel.wait(self.poll.interval):
                logger.debug(f"Bandwidth stream [{self.target.describe()}] cancelled "
                             f"after {self.samples_emitted} samples")
                return

    # =========================================================================
    # PUSH MODE
    # =========================================================================

    def run(self, consumer: Callable[[BandwidthSample], Any]) -> int:
        """
        Run the stream in the calling thread, pushing samples to ``consumer``.

        Args:
            consumer: Called once per sample, in take order

        Returns:
            Number of samples delivered

        Raises:
            NotOperational: If the metering subsystem cannot serve metrics
        """
        self._claim()
        self._check_operational()

        def deliver(sample: BandwidthSample) -> bool:
            consumer(sample)
            return True

        try:
            self._loop(deliver)
        finally:
            self._set_state(StreamState.TERMINATED)
        return self.samples_emitted

    # =========================================================================
    # BACKGROUND MODE
    # =========================================================================

    def start(self) -> 'SampleStream':
        """
        Start sampling on a background thread.

        The stream must be iterated to the end, cancelled, or closed;
        until then the sampling thread waits for its sample to be taken.

        Returns:
            self, ready to be iterated

        Raises:
            NotOperational: If the metering subsystem cannot serve metrics
        """
        self._claim()
        self._check_operational()

        # One pending sample plus the end marker
        self._queue = queue.Queue(maxsize=2)
        self._thread = threading.Thread(
            target=self._produce,
            name=f"bwstat-stream-{self.target.describe()}",
            daemon=True
        )
        if self.poll.enabled:
            logger.debug(f"Polling {self.target.describe()} every "
                         f"{format_duration(self.poll.interval)}")
        self._thread.start()
        return self

    def _produce(self):
        try:
            self._loop(self._handoff)
        except Exception as e:
            logger.error(f"Bandwidth stream [{self.target.describe()}] failed: {e}")
            self._error = e
        finally:
            self._set_state(StreamState.TERMINATED)
            self._put_end()

    def _handoff(self, sample: BandwidthSample) -> bool:
        """
        Pass one sample to the consumer and wait until it is taken.

        On cancellation the sample stays queued for the consumer and the
        producer stops waiting. If the consumer has left, the sample is
        withdrawn.
        """
        self._taken.clear()
        self._queue.put_nowait(sample)
        while not self._taken.wait(DELIVERY_POLL_INTERVAL):
            if self._detached.is_set():
                try:
                    self._queue.get_nowait()
                except queue.Empty:
                    return True
                return False
            if self.cancel.is_set():
                return True
        return True

    def _put_end(self):
        # Room is left for the marker behind at most one untaken sample
        self._queue.put_nowait(_END)

    def __iter__(self) -> Iterator[BandwidthSample]:
        if self._thread is None:
            raise RuntimeError("sample stream not started")
        try:
            while True:
                item = self._queue.get()
                if item is _END:
                    break
                self._taken.set()
                yield item
        finally:
            # Leaving early cancels the producer
            if self.state is not StreamState.TERMINATED:
                self.cancel.set()
            self._detached.set()

        if self._error is not None:
            raise self._error

    def close(self, timeout: float = 2.0):
        """Cancel the stream and wait for the sampling thread to finish."""
        self.cancel.set()
        self._detached.set()
        if self._thread and self._thread.is_alive() and self._thread is not threading.current_thread():
            self._thread.join(timeout=timeout)

    def __enter__(self) -> 'SampleStream':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
