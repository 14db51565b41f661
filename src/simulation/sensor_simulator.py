"""
Sensor Simulator
=================
Facade tying the inputs, the three sensor engines and the published
readouts together. This is the whole boundary the GUI shell talks to.
"""

from __future__ import annotations

from typing import Callable, Iterable, Optional

from loguru import logger

from sensor_interface import (
    GyroscopeReading,
    Orientation,
    ScreenTarget,
    SensorReadoutSnapshot,
    SimulatorConfig,
)
from data_pipeline import DataStreamConfig, InputStateManager, ReadoutStateManager

from .sensor_engines import AccelerometerEngine, GyroscopeEngine, MagnetometerEngine
from .vector import Vector3


def format_readout(values: Iterable[float]) -> str:
    """Render readout values the way the sensor display shows them."""
    return ", ".join(f"{v:.2f}" for v in values)


class SensorSimulator:
    """
    Simulated accelerometer, gyroscope and magnetometer of one device.

    Usage:
        simulator = SensorSimulator()
        simulator.set_orientation(yaw=30, pitch=-20, roll=0)
        simulator.step(dt=0.01, now_ms=0)
        accel = simulator.get_latest_accelerometer_reading()
    """

    def __init__(self, config: Optional[SimulatorConfig] = None):
        """
        Initialize simulator.

        Args:
            config: Engine, sampler and clock parameters
        """
        self.config = config or SimulatorConfig()

        self.inputs = InputStateManager()
        self.readouts = ReadoutStateManager(
            DataStreamConfig(buffer_size=self.config.history_size)
        )

        self.accelerometer = AccelerometerEngine(self.config.accelerometer)
        self.gyroscope = GyroscopeEngine(self.config.gyroscope)
        self.magnetometer = MagnetometerEngine(self.config.magnetometer)

        self._tick = 0

        logger.info("Sensor simulator initialized")

    @property
    def engines(self) -> tuple:
        """Engines in tick order."""
        return (self.gyroscope, self.accelerometer, self.magnetometer)

    @property
    def tick_count(self) -> int:
        return self._tick

    # -------------------------------------------------------------------------
    # Input
    # -------------------------------------------------------------------------

    def set_orientation(self, yaw: float, pitch: float, roll: float) -> Orientation:
        return self.inputs.set_orientation(yaw, pitch, roll)

    def set_screen_target(self, x: float, z: float) -> ScreenTarget:
        return self.inputs.set_screen_target(x, z)

    # -------------------------------------------------------------------------
    # Tick
    # -------------------------------------------------------------------------

    def step(self, dt: float, now_ms: int) -> SensorReadoutSnapshot:
        """
        Advance all engines by one tick and publish readouts.

        Args:
            dt: Elapsed time since the previous tick (seconds)
            now_ms: Current time in milliseconds

        Returns:
            Snapshot of the latest published readouts
        """
        inputs = self.inputs.snapshot
        orientation = inputs.orientation

        self.gyroscope.update(dt, orientation)

        self.accelerometer.refresh_acceleration(dt, inputs.target)
        self.accelerometer.update(orientation)

        self.magnetometer.update(orientation)

        published = [
            engine.sensor_type
            for engine in self.engines
            if engine.update_readout(now_ms)
        ]

        self._tick += 1
        accel = self.accelerometer.sampler.latest
        gyro = self.gyroscope.sampler.latest
        mag = self.magnetometer.sampler.latest

        snapshot = SensorReadoutSnapshot(
            tick=self._tick,
            yaw=orientation.yaw,
            pitch=orientation.pitch,
            roll=orientation.roll,
            accel_x=accel[0],
            accel_y=accel[1],
            accel_z=accel[2],
            gyro_pitch=gyro[0],
            gyro_yaw=gyro[1],
            gyro_roll=gyro[2],
            mag_x=mag[0],
            mag_y=mag[1],
            mag_z=mag[2],
            published=published,
        )
        self.readouts.publish(snapshot)
        return snapshot

    # -------------------------------------------------------------------------
    # Output
    # -------------------------------------------------------------------------

    @property
    def latest_snapshot(self) -> SensorReadoutSnapshot:
        return self.readouts.current_state

    def get_latest_accelerometer_reading(self) -> Vector3:
        return Vector3.from_array(self.latest_snapshot.acceleration_vector)

    def get_latest_gyroscope_reading(self) -> GyroscopeReading:
        return GyroscopeReading.from_array(self.latest_snapshot.angular_velocity_vector)

    def get_latest_magnetometer_reading(self) -> Vector3:
        return Vector3.from_array(self.latest_snapshot.magnetic_field_vector)

    def subscribe(self, callback: Callable[[SensorReadoutSnapshot], None]) -> None:
        self.readouts.subscribe(callback)

    def unsubscribe(self, callback: Callable) -> None:
        self.readouts.unsubscribe(callback)

    def describe_readouts(self) -> dict:
        """Two-decimal text of the latest readouts per sensor."""
        snapshot = self.latest_snapshot
        return {
            "accelerometer": format_readout(snapshot.acceleration_vector),
            "gyroscope": format_readout(snapshot.angular_velocity_vector),
            "magnetic field": format_readout(snapshot.magnetic_field_vector),
        }
