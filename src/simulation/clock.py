"""
Simulation Clock
=================
Periodic tick loop driving the sensor simulator.

The elapsed time between ticks is measured, not assumed, so the
physics integrates the real step length even when the loop runs late.
Both dt and the publish timestamp can be injected for deterministic
replay.
"""

from __future__ import annotations

import asyncio
import threading
import time
from typing import Callable, Optional

from loguru import logger

from sensor_interface import ClockConfig, SensorReadoutSnapshot

from .sensor_simulator import SensorSimulator


class SimulationClock:
    """
    Drives SensorSimulator.step at a target interval.

    Usage:
        clock = SimulationClock(simulator)
        clock.start()
        ...
        clock.stop()
    """

    def __init__(
        self,
        simulator: SensorSimulator,
        config: Optional[ClockConfig] = None,
        time_source: Callable[[], float] = time.monotonic
    ):
        """
        Initialize clock.

        Args:
            simulator: Simulator to advance
            config: Tick interval (defaults to the simulator's clock config)
            time_source: Monotonic clock returning seconds
        """
        self.simulator = simulator
        self.config = config or simulator.config.clock
        self._time_source = time_source

        self._last_tick_time: Optional[float] = None
        self._tick_count = 0
        self._skipped_ticks = 0

        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

        logger.info(f"Simulation clock initialized: interval={self.config.interval_ms} ms")

    @property
    def interval_s(self) -> float:
        return self.config.interval_ms / 1000.0

    @property
    def tick_count(self) -> int:
        return self._tick_count

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def tick(
        self,
        dt: Optional[float] = None,
        now_ms: Optional[int] = None
    ) -> Optional[SensorReadoutSnapshot]:
        """
        Execute one simulation tick.

        Args:
            dt: Injected time step (seconds); measured when omitted
            now_ms: Injected publish time (ms); taken from the time source when omitted

        Returns:
            Published snapshot, or None if a measured step was not positive
        """
        if dt is not None and not dt > 0:
            raise ValueError(f"Injected time step must be positive, got {dt}")

        now = self._time_source()
        if dt is None:
            if self._last_tick_time is None:
                dt = self.interval_s
            else:
                dt = now - self._last_tick_time
        self._last_tick_time = now

        if not dt > 0:
            self._skipped_ticks += 1
            logger.debug(f"Skipping tick with non-positive dt={dt}")
            return None

        if now_ms is None:
            now_ms = int(round(now * 1000))

        snapshot = self.simulator.step(dt, now_ms)
        self._tick_count += 1
        return snapshot

    def _remaining(self, started: float) -> float:
        return max(0.0, self.interval_s - (self._time_source() - started))

    def run(self, stop_event: Optional[threading.Event] = None) -> None:
        """
        Tick until the stop event is set.

        Args:
            stop_event: Event ending the loop (defaults to the clock's own)
        """
        stop = stop_event or self._stop_event
        logger.info("Simulation loop started")

        while not stop.is_set():
            started = self._time_source()
            self.tick()
            stop.wait(self._remaining(started))

        logger.info(f"Simulation loop stopped after {self._tick_count} ticks")

    async def run_async(self, shutdown_event: asyncio.Event) -> None:
        """Tick inside an asyncio event loop until shutdown is requested."""
        logger.info("Simulation loop started (async)")

        while not shutdown_event.is_set():
            try:
                started = self._time_source()
                self.tick()
                await asyncio.wait_for(
                    shutdown_event.wait(),
                    timeout=self._remaining(started)
                )
            except asyncio.TimeoutError:
                continue
            except asyncio.CancelledError:
                break

        logger.info(f"Simulation loop stopped after {self._tick_count} ticks")

    def start(self) -> None:
        """Run the tick loop on a background thread."""
        if self.is_running:
            logger.warning("Simulation clock already running")
            return

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self.run,
            name="simulation-clock",
            daemon=True
        )
        self._thread.start()

    def stop(self, timeout: Optional[float] = 1.0) -> None:
        """Signal the tick loop to stop and wait for it."""
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout)
            if self._thread.is_alive():
                # Keep the handle so start() cannot launch a second loop
                logger.warning(f"Simulation clock did not stop within {timeout}s")
                return
            self._thread = None

    def get_statistics(self) -> dict:
        """Get clock statistics."""
        return {
            "running": self.is_running,
            "tick_count": self._tick_count,
            "skipped_ticks": self._skipped_ticks,
            "interval_ms": self.config.interval_ms,
        }
