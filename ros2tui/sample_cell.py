"""
Hand-off of samples from subscription callbacks to the UI thread.

Each subscribed stream owns one LatestSample cell: the callback replaces its
content wholesale and the UI copies it out under the lock. Plot windows keep
their own bounded history under a separate lock so a new sample never waits
on plot maintenance.
"""

import threading
import time
from collections import deque
from typing import Callable, List, Optional, Sequence, Tuple

from ros2tui.field_path import numeric_value
from ros2tui.generic_message import GenericMessage, MessageMetadata

# Sliding window used for the instantaneous frequency estimate
HZ_WINDOW_SIZE = 10

# Seconds of history shown by the plot views
PLOT_MAX_DURATION = 10.0


class LatestSample:
    """Single-slot cell holding the most recent sample of one stream."""

    def __init__(self):
        self._lock = threading.Lock()
        self._message: Optional[GenericMessage] = None
        self._metadata: Optional[MessageMetadata] = None
        self._count = 0
        self._closed = False

    def put(self, message: GenericMessage, metadata: MessageMetadata):
        with self._lock:
            if self._closed:
                return
            self._message = message
            self._metadata = metadata
            self._count += 1

    def get(self) -> Tuple[Optional[GenericMessage], Optional[MessageMetadata]]:
        """Return a snapshot of the latest sample; the tree is not shared with the producer."""
        with self._lock:
            message, metadata = self._message, self._metadata
        # Copy outside the lock, producers only ever replace the reference
        return (message.copy() if message is not None else None), metadata

    @property
    def count(self) -> int:
        with self._lock:
            return self._count

    def close(self):
        """Drop the stored sample; later puts become no-ops."""
        with self._lock:
            self._closed = True
            self._message = None
            self._metadata = None

    @property
    def closed(self) -> bool:
        with self._lock:
            return self._closed


class _TimeWindow:
    """(stamp, value) points limited to the last max_duration seconds."""

    def __init__(self, max_duration: float = PLOT_MAX_DURATION, clock: Callable[[], float] = time.time):
        self._lock = threading.Lock()
        self.points: deque = deque()
        self.max_duration = max_duration
        self._clock = clock

    def _prune(self, now: float):
        # Must be called under _lock
        while self.points and now - self.points[0][0] > self.max_duration:
            self.points.popleft()

    def snapshot(self) -> List[Tuple[float, float]]:
        with self._lock:
            self._prune(self._clock())
            return list(self.points)

    def increase_duration(self, step: float = 1.0):
        with self._lock:
            self.max_duration += step

    def decrease_duration(self, step: float = 1.0):
        with self._lock:
            if self.max_duration > step:
                self.max_duration -= step


class HzWindow(_TimeWindow):
    """Message frequency over a sliding window of receipt times."""

    def __init__(
        self,
        window_size: int = HZ_WINDOW_SIZE,
        max_duration: float = PLOT_MAX_DURATION,
        clock: Callable[[], float] = time.time,
    ):
        super().__init__(max_duration, clock)
        self.timestamps: deque = deque(maxlen=window_size)

    def add_timestamp(self, ts: float) -> float:
        """Record a receipt time and return the current frequency estimate."""
        with self._lock:
            self.timestamps.append(ts)
            if len(self.timestamps) < 2:
                return 0.0
            duration = self.timestamps[-1] - self.timestamps[0]
            if duration <= 0:
                return 0.0
            hz = (len(self.timestamps) - 1) / duration
            self.points.append((ts, hz))
            self._prune(ts)
            return hz

    def on_message(self, message: GenericMessage, metadata: MessageMetadata):
        self.add_timestamp(metadata.received_time)

    @property
    def current_hz(self) -> float:
        with self._lock:
            return self.points[-1][1] if self.points else 0.0


class ValueWindow(_TimeWindow):
    """Numeric value of one field path, sampled from every message."""

    def __init__(
        self,
        field_path: Sequence[int],
        max_duration: float = PLOT_MAX_DURATION,
        clock: Callable[[], float] = time.time,
    ):
        super().__init__(max_duration, clock)
        self.field_path = list(field_path)

    def on_message(self, message: GenericMessage, metadata: MessageMetadata):
        value = numeric_value(message, self.field_path)
        if value is None:
            return
        with self._lock:
            self.points.append((metadata.received_time, value))
            self._prune(metadata.received_time)
