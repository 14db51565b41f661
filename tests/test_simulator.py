"""
Test Suite for the Simulator Facade and Clock
==============================================
Tick ordering, published readouts and the tick loop.
"""

import asyncio
import threading
import time

import pytest
import numpy as np

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from sensor_interface import (
    EARTH_GRAVITY,
    ClockConfig,
    SamplerConfig,
    SensorReadoutSnapshot,
    SensorType,
    SimulatorConfig,
)
from simulation import SensorSimulator, SimulationClock, format_readout


class RecordingSimulator:
    """Stand-in recording the arguments of each step."""

    def __init__(self):
        self.calls = []

    def step(self, dt, now_ms):
        self.calls.append((dt, now_ms))
        return SensorReadoutSnapshot(tick=len(self.calls))


class BlockingSimulator:
    """Stand-in whose step blocks until released."""

    def __init__(self):
        self.entered = threading.Event()
        self.release = threading.Event()
        self.calls = 0

    def step(self, dt, now_ms):
        self.calls += 1
        self.entered.set()
        self.release.wait(5.0)
        return SensorReadoutSnapshot(tick=self.calls)


class TestSensorSimulator:
    """Tests for the simulator facade."""

    def setup_method(self):
        """Setup test fixtures."""
        self.simulator = SensorSimulator()

    def test_first_step_publishes_every_sensor(self):
        snapshot = self.simulator.step(0.01, now_ms=0)

        assert snapshot.tick == 1
        assert snapshot.published == [
            SensorType.GYROSCOPE,
            SensorType.ACCELEROMETER,
            SensorType.MAGNETIC_FIELD,
        ]
        assert self.simulator.latest_snapshot is snapshot

    def test_identity_scenario(self):
        self.simulator.step(0.01, now_ms=0)

        mag = self.simulator.get_latest_magnetometer_reading()
        np.testing.assert_array_almost_equal(
            mag.to_array(), [5.9395, 22.8741, -43.1805], decimal=10
        )

        accel = self.simulator.get_latest_accelerometer_reading()
        np.testing.assert_array_almost_equal(accel.to_array(), [0, 0, EARTH_GRAVITY])

        gyro = self.simulator.get_latest_gyroscope_reading()
        assert (gyro.pitch, gyro.yaw, gyro.roll) == (0.0, 0.0, 0.0)

    def test_readings_are_latest_published_values(self):
        self.simulator.step(0.01, now_ms=0)
        self.simulator.set_orientation(0, 90, 0)

        snapshot = self.simulator.step(0.01, now_ms=10)
        assert snapshot.published == []
        assert snapshot.pitch == 90

        accel = self.simulator.get_latest_accelerometer_reading()
        np.testing.assert_array_almost_equal(accel.to_array(), [0, 0, EARTH_GRAVITY])
        np.testing.assert_array_almost_equal(
            self.simulator.accelerometer.true_value.to_array(), [-EARTH_GRAVITY, 0, 0]
        )

        self.simulator.step(0.01, now_ms=200)
        accel = self.simulator.get_latest_accelerometer_reading()
        np.testing.assert_array_almost_equal(accel.to_array(), [-EARTH_GRAVITY, 0, 0])

    def test_held_target_settles_to_gravity(self):
        self.simulator.set_orientation(0, 0, 0)
        self.simulator.set_screen_target(0, 0)

        for i in range(300):
            self.simulator.step(0.01, now_ms=i * 10)

        accel = self.simulator.get_latest_accelerometer_reading()
        np.testing.assert_array_almost_equal(accel.to_array(), [0, 0, EARTH_GRAVITY])

    def test_orientation_is_normalized_on_entry(self):
        orientation = self.simulator.set_orientation(-90, 100, 0)

        assert orientation.yaw == pytest.approx(90)
        assert orientation.pitch == pytest.approx(80)
        assert orientation.roll == pytest.approx(180)

    def test_saturation_through_facade(self):
        self.simulator.set_screen_target(1e7, 0)
        snapshot = self.simulator.step(0.01, now_ms=0)

        limit = EARTH_GRAVITY * 10
        assert np.all(np.abs(snapshot.acceleration_vector) <= limit)
        assert snapshot.accel_x == pytest.approx(-limit)

    def test_non_finite_target_keeps_readings_finite(self):
        self.simulator.set_screen_target(10, 0)
        with pytest.raises(ValueError):
            self.simulator.set_screen_target(float("nan"), 0)

        for i in range(200):
            snapshot = self.simulator.step(0.01, now_ms=i * 10)

        assert np.all(np.isfinite(snapshot.acceleration_vector))
        assert np.all(np.abs(snapshot.acceleration_vector) <= EARTH_GRAVITY * 10)

    def test_subscriber_receives_snapshots(self):
        received = []
        self.simulator.subscribe(received.append)

        self.simulator.step(0.01, now_ms=0)
        self.simulator.step(0.01, now_ms=10)
        self.simulator.unsubscribe(received.append)
        self.simulator.step(0.01, now_ms=20)

        assert [s.tick for s in received] == [1, 2]

    def test_describe_readouts(self):
        self.simulator.step(0.01, now_ms=0)
        text = self.simulator.describe_readouts()

        assert text["magnetic field"] == "5.94, 22.87, -43.18"
        assert text["accelerometer"] == "0.00, 0.00, 9.81"
        assert text["gyroscope"] == "0.00, 0.00, 0.00"

    def test_disabled_sensor_keeps_readout(self):
        config = SimulatorConfig()
        config.magnetometer.sampler = SamplerConfig(enabled=False)
        simulator = SensorSimulator(config)

        snapshot = simulator.step(0.01, now_ms=0)
        assert SensorType.MAGNETIC_FIELD not in snapshot.published
        assert snapshot.magnetic_field_vector.tolist() == [0.0, 0.0, 0.0]


def test_format_readout():
    assert format_readout([1.234, -0.005, 10]) == "1.23, -0.01, 10.00"


class TestSimulationClock:
    """Tests for the tick loop."""

    def test_measured_time_steps(self):
        simulator = RecordingSimulator()
        times = iter([0.0, 0.01, 0.03])
        clock = SimulationClock(simulator, ClockConfig(interval_ms=10), time_source=lambda: next(times))

        for _ in range(3):
            clock.tick()

        dts = [dt for dt, _ in simulator.calls]
        assert dts == pytest.approx([0.01, 0.01, 0.02])
        assert [now for _, now in simulator.calls] == [0, 10, 30]
        assert clock.tick_count == 3

    def test_non_positive_measured_step_is_skipped(self):
        simulator = RecordingSimulator()
        times = iter([1.0, 1.0, 0.5])
        clock = SimulationClock(simulator, ClockConfig(), time_source=lambda: next(times))

        assert clock.tick() is not None
        assert clock.tick() is None
        assert clock.tick() is None
        assert clock.get_statistics()["skipped_ticks"] == 2
        assert len(simulator.calls) == 1

    def test_injected_time_step(self):
        simulator = RecordingSimulator()
        clock = SimulationClock(simulator, ClockConfig())

        clock.tick(dt=0.005, now_ms=1234)
        assert simulator.calls == [(0.005, 1234)]

    def test_injected_non_positive_step_rejected(self):
        clock = SimulationClock(RecordingSimulator(), ClockConfig())
        with pytest.raises(ValueError):
            clock.tick(dt=0.0)

    def test_stall_publishes_once(self):
        """Resuming after a stall publishes once and snaps the schedule."""
        simulator = SensorSimulator()
        clock = SimulationClock(simulator)

        clock.tick(dt=0.01, now_ms=0)
        snapshot = clock.tick(dt=5.0, now_ms=5000)

        assert len(snapshot.published) == 3
        for engine in simulator.engines:
            assert engine.sampler.publish_count == 2
            assert engine.sampler.next_publish_at_ms == 5000

    def test_background_thread_start_stop(self):
        simulator = SensorSimulator()
        clock = SimulationClock(simulator)

        clock.start()
        assert clock.is_running
        for i in range(20):
            simulator.set_orientation(i, 0, 0)
            time.sleep(0.005)
        clock.stop()

        assert not clock.is_running
        assert clock.tick_count > 0
        assert simulator.latest_snapshot.tick == clock.tick_count

    def test_stop_timeout_keeps_live_thread(self):
        """A loop that outlives stop() is still reported and not duplicated."""
        simulator = BlockingSimulator()
        clock = SimulationClock(simulator, ClockConfig())

        clock.start()
        assert simulator.entered.wait(2.0)

        clock.stop(timeout=0.05)
        assert clock.is_running

        thread = clock._thread
        clock.start()
        assert clock._thread is thread

        simulator.release.set()
        clock.stop()
        assert not clock.is_running
        assert simulator.calls == 1

    @pytest.mark.asyncio
    async def test_run_async_stops_on_shutdown(self):
        simulator = SensorSimulator()
        clock = SimulationClock(simulator)
        shutdown = asyncio.Event()

        asyncio.get_running_loop().call_later(0.1, shutdown.set)
        await asyncio.wait_for(clock.run_async(shutdown), timeout=2.0)

        assert clock.tick_count > 0
        assert simulator.tick_count == clock.tick_count


# Fixtures

@pytest.fixture
def sample_simulator():
    """Provide simulator with default configuration."""
    return SensorSimulator()


def test_fixture_simulator_has_no_readouts(sample_simulator):
    assert sample_simulator.tick_count == 0
    assert sample_simulator.latest_snapshot.published == []


if __name__ == "__main__":
    pytest.main([__file__, "-v", "--tb=short"])
