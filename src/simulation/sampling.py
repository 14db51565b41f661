"""
Sensor Readout Sampling
========================
Rate-limited, optionally averaging readout policy shared by every sensor.

Each engine updates an internal "true" value on every tick; the sampler
decides when that value (or its average since the last publish) becomes
the externally visible readout.
"""

from __future__ import annotations

from typing import Optional

import numpy as np
from numpy.typing import NDArray
from loguru import logger

from sensor_interface import SamplerConfig, SensorDelay, DEFAULT_SAMPLE_PERIOD_MS


class SensorSampler:
    """
    Publishing policy over a fixed number of channels.

    Accumulation runs on every tick while averaging is enabled; only
    publishing is gated by the sample period. When the tick loop falls
    behind, the schedule snaps to the current time instead of replaying
    the missed periods.

    Usage:
        sampler = SensorSampler("gyroscope", channels=3)
        if sampler.on_tick(values, now_ms):
            reading = sampler.latest
    """

    def __init__(
        self,
        name: str,
        channels: int = 3,
        config: Optional[SamplerConfig] = None
    ):
        """
        Initialize sampler.

        Args:
            name: Sensor name used in log messages
            channels: Number of values published together
            config: Readout policy (defaults to 200 ms averaging)
        """
        config = config or SamplerConfig()

        self.name = name
        self.channels = channels
        self.enabled = config.enabled
        self.default_period_ms = DEFAULT_SAMPLE_PERIOD_MS

        self._averaging = config.averaging
        self._period_ms = config.sample_period_ms
        self._next_publish_at_ms = 0

        self._accumulator = np.zeros(channels)
        self._sample_count = 0
        self._last_published = np.zeros(channels)
        self._publish_count = 0

        logger.debug(
            f"{name} sampler: period={self._period_ms} ms, averaging={self._averaging}"
        )

    @property
    def averaging(self) -> bool:
        return self._averaging

    @property
    def sample_period_ms(self) -> int:
        return self._period_ms

    @property
    def next_publish_at_ms(self) -> int:
        return self._next_publish_at_ms

    @property
    def sample_count(self) -> int:
        """Number of samples in the running average."""
        return self._sample_count

    @property
    def publish_count(self) -> int:
        return self._publish_count

    @property
    def latest(self) -> NDArray:
        """Most recently published readout (copy)."""
        return self._last_published.copy()

    def set_averaging(self, averaging: bool) -> None:
        self._averaging = averaging
        self._reset_accumulator()
        logger.debug(f"{self.name} averaging set to {averaging}")

    def set_sample_period(self, period_ms: int) -> None:
        """
        Set duration between two publishes.

        Args:
            period_ms: Period in milliseconds (0 publishes every tick)
        """
        if period_ms < 0:
            raise ValueError(f"Sample period must be non-negative, got {period_ms}")
        self._period_ms = int(period_ms)
        logger.debug(f"{self.name} sample period set to {self._period_ms} ms")

    def set_sensor_delay(self, delay: SensorDelay) -> None:
        self.set_sample_period(SensorDelay(delay).value)

    def reset_rate(self) -> None:
        """Restore the default sample period."""
        self.set_sample_period(self.default_period_ms)

    def _reset_accumulator(self) -> None:
        self._accumulator = np.zeros(self.channels)
        self._sample_count = 0

    def on_tick(self, true_value, now_ms: int) -> bool:
        """
        Feed one tick's true value and publish if due.

        Args:
            true_value: Current internal sensor value (length == channels)
            now_ms: Current time in milliseconds

        Returns:
            True if a new readout was published on this tick
        """
        if not self.enabled:
            return False

        value = np.asarray(true_value, dtype=float)
        if value.shape != (self.channels,):
            raise ValueError(
                f"{self.name} expects {self.channels} channels, got shape {value.shape}"
            )

        if self._averaging:
            self._accumulator += value
            self._sample_count += 1

        if now_ms < self._next_publish_at_ms:
            return False

        self._next_publish_at_ms += self._period_ms
        if self._next_publish_at_ms < now_ms:
            # Fell behind: drop the backlog
            logger.debug(f"{self.name} publish schedule snapped to {now_ms} ms")
            self._next_publish_at_ms = now_ms

        if self._averaging:
            # sample_count >= 1: this tick was accumulated above
            self._last_published = self._accumulator / self._sample_count
            self._reset_accumulator()
        else:
            self._last_published = value.copy()

        self._publish_count += 1
        logger.trace(f"{self.name} published {self._last_published}")
        return True
