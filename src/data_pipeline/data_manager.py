"""
Data Pipeline - Input and Readout State
========================================
Thread-safe hand-off between the input layer, the tick loop and readers.

Responsibilities:
- Publish orientation/target updates atomically (last writer wins)
- Publish immutable readout snapshots from the tick loop
- Notify subscribers and keep a bounded in-memory history
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Optional, Dict, List, Any, Callable
import threading

from loguru import logger

from sensor_interface import Orientation, ScreenTarget, SensorReadoutSnapshot


@dataclass
class DataStreamConfig:
    """Configuration for readout streaming."""
    buffer_size: int = 1000


@dataclass(frozen=True)
class InputSnapshot:
    """One consistent view of the external inputs."""
    orientation: Orientation = field(default_factory=Orientation)
    target: ScreenTarget = field(default_factory=ScreenTarget)
    sequence: int = 0


class InputStateManager:
    """
    Latest orientation and screen target.

    Writers replace the whole snapshot under a lock, so the tick loop
    never sees yaw, pitch and roll from different updates.
    """

    def __init__(self):
        self._snapshot = InputSnapshot()
        self._lock = threading.Lock()

    @property
    def snapshot(self) -> InputSnapshot:
        with self._lock:
            return self._snapshot

    @property
    def orientation(self) -> Orientation:
        return self.snapshot.orientation

    @property
    def target(self) -> ScreenTarget:
        return self.snapshot.target

    def set_orientation(self, yaw: float, pitch: float, roll: float) -> Orientation:
        """
        Publish a new device orientation.

        Args:
            yaw, pitch, roll: Angles in degrees (normalized on entry)

        Returns:
            The normalized orientation that was stored
        """
        orientation = Orientation(float(yaw), float(pitch), float(roll)).normalized()
        with self._lock:
            self._snapshot = replace(
                self._snapshot,
                orientation=orientation,
                sequence=self._snapshot.sequence + 1
            )
        logger.trace(f"Orientation set: {orientation}")
        return orientation

    def set_screen_target(self, x: float, z: float) -> ScreenTarget:
        """Publish a new screen-space target (pixels)."""
        target = ScreenTarget(float(x), float(z))
        with self._lock:
            self._snapshot = replace(
                self._snapshot,
                target=target,
                sequence=self._snapshot.sequence + 1
            )
        logger.trace(f"Screen target set: {target}")
        return target


class ReadoutStateManager:
    """
    Latest published sensor readouts.

    The tick loop is the single writer; any thread may read. Snapshots
    are immutable, so readers can keep them without copying.
    """

    def __init__(self, config: Optional[DataStreamConfig] = None):
        """
        Initialize readout manager.

        Args:
            config: Stream configuration
        """
        self.config = config or DataStreamConfig()

        self._current_state = SensorReadoutSnapshot()
        self._state_lock = threading.RLock()

        self._history: deque = deque(maxlen=self.config.buffer_size)

        self._subscribers: List[Callable[[SensorReadoutSnapshot], None]] = []

        # Statistics
        self._update_count = 0
        self._last_update_time: Optional[datetime] = None
        self._updates_per_second = 0.0

        logger.info("ReadoutStateManager initialized")

    @property
    def current_state(self) -> SensorReadoutSnapshot:
        """Get latest readouts (thread-safe)."""
        with self._state_lock:
            return self._current_state

    def publish(self, snapshot: SensorReadoutSnapshot) -> None:
        """
        Replace the current readouts.

        Args:
            snapshot: Readouts at the end of a tick
        """
        with self._state_lock:
            self._current_state = snapshot
            self._history.append(snapshot)

            self._update_count += 1
            now = snapshot.timestamp
            if self._last_update_time:
                dt = (now - self._last_update_time).total_seconds()
                if dt > 0:
                    # Exponential moving average
                    alpha = 0.1
                    instant_rate = 1.0 / dt
                    self._updates_per_second = alpha * instant_rate + (1 - alpha) * self._updates_per_second
            self._last_update_time = now

        # Notify subscribers (outside lock)
        self._notify_subscribers(snapshot)

    def subscribe(self, callback: Callable[[SensorReadoutSnapshot], None]) -> None:
        """
        Subscribe to readout updates.

        Callbacks run on the tick loop's thread; callers that need another
        execution context must marshal the snapshot themselves.

        Args:
            callback: Function to call on each published snapshot
        """
        with self._state_lock:
            self._subscribers.append(callback)
        logger.debug(f"Added readout subscriber, total: {len(self._subscribers)}")

    def unsubscribe(self, callback: Callable) -> None:
        """Remove a subscriber."""
        with self._state_lock:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

    def _notify_subscribers(self, snapshot: SensorReadoutSnapshot) -> None:
        with self._state_lock:
            subscribers = list(self._subscribers)
        for callback in subscribers:
            try:
                callback(snapshot)
            except Exception as e:
                logger.error(f"Subscriber callback error: {e}")

    def get_history(self, max_samples: Optional[int] = None) -> List[SensorReadoutSnapshot]:
        """
        Get published snapshots, oldest first.

        Args:
            max_samples: Maximum number of samples

        Returns:
            List of historical snapshots
        """
        with self._state_lock:
            history = list(self._history)

        if max_samples:
            history = history[-max_samples:]

        return history

    def get_statistics(self) -> Dict[str, Any]:
        """Get readout manager statistics."""
        with self._state_lock:
            return {
                "update_count": self._update_count,
                "updates_per_second": round(self._updates_per_second, 1),
                "history_size": len(self._history),
                "subscriber_count": len(self._subscribers),
                "last_update": self._last_update_time.isoformat() if self._last_update_time else None
            }
