"""
Sensor Simulation Engines
==========================
Physical models for the three simulated device sensors.

This module implements:
- Accelerometer: a test mass tethered to the device housing by a damped
  spring, plus gravity rotated into the device frame
- Gyroscope: angular velocity differentiated from successive orientation
  samples, with a dead zone and a lagging reference angle
- Magnetometer: a fixed Earth field rotated into the device frame

Each engine owns its physical state and one SensorSampler that turns the
continuously updated "true" value into a rate-limited readout.

Mathematical Model (accelerometer, per axis):
----------------------------------------------
    F = k (target - x)
    a = F / m
    v += a dt
    x += v dt
    x += γ (target - x) dt

The device perceives the opposite of the test mass acceleration.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np
from loguru import logger

from sensor_interface import (
    AccelerometerConfig,
    GyroscopeConfig,
    MagnetometerConfig,
    GyroscopeReading,
    Orientation,
    ScreenTarget,
    SensorType,
)

from .sampling import SensorSampler
from .vector import Vector3


def _check_dt(dt: float) -> None:
    if not dt > 0:
        raise ValueError(f"Time step must be positive, got {dt}")


@dataclass
class SpringState:
    """
    Accelerometer test particle state.

    Positions are in screen pixels, velocities in pixels/s and
    accelerations in pixels/s². Do not confuse position with acceleration.
    """
    position_x: float = 0.0
    position_z: float = 0.0
    velocity_x: float = 0.0
    velocity_z: float = 0.0
    accel_x: float = 0.0
    accel_z: float = 0.0


@dataclass
class GyroAxisState:
    """Lagging reference angle (degrees) and last angular velocity (rad/s)."""
    last_sampled_angle: float = 0.0
    angular_velocity: float = 0.0


class AccelerometerEngine:
    """
    Spring-mass-damper accelerometer model.

    Usage:
        engine = AccelerometerEngine()
        engine.refresh_acceleration(dt=0.01, target=ScreenTarget(30, 0))
        engine.update(orientation)
        engine.update_readout(now_ms)
        reading = engine.latest_reading
    """

    sensor_type = SensorType.ACCELEROMETER

    def __init__(self, config: Optional[AccelerometerConfig] = None):
        """
        Initialize accelerometer.

        Args:
            config: Spring and saturation parameters
        """
        self.config = config or AccelerometerConfig()
        self.spring = SpringState()
        self.sampler = SensorSampler(self.sensor_type.value, 3, self.config.sampler)

        self._spring_k = self.config.spring_constant
        self._gamma = self.config.damping
        self._show_linear = self.config.show_linear_acceleration

        self._gravity_component = Vector3()
        self._linear_component = Vector3()
        self._true_value = Vector3()

        logger.info(
            f"Accelerometer initialized: k={self._spring_k}, γ={self._gamma}, "
            f"limit=±{self.saturation_limit:.2f} m/s²"
        )

    @property
    def spring_constant(self) -> float:
        return self._spring_k

    @property
    def damping(self) -> float:
        return self._gamma

    @property
    def saturation_limit(self) -> float:
        return self.config.saturation_limit

    @property
    def show_linear_acceleration(self) -> bool:
        return self._show_linear

    @show_linear_acceleration.setter
    def show_linear_acceleration(self, show: bool) -> None:
        self._show_linear = show

    @property
    def gravity_component(self) -> Vector3:
        """Gravity in body frame from the last update."""
        return self._gravity_component

    @property
    def linear_component(self) -> Vector3:
        """Linear acceleration in body frame from the last update."""
        return self._linear_component

    @property
    def true_value(self) -> Vector3:
        """Clamped, unsampled acceleration from the last update."""
        return self._true_value

    @property
    def latest_reading(self) -> Vector3:
        return Vector3.from_array(self.sampler.latest)

    def set_spring_parameters(self, spring_constant: float, damping: float) -> None:
        """
        Set spring constant and damping.

        Args:
            spring_constant: k (1/s² for unit mass)
            damping: γ (1/s)
        """
        if not (np.isfinite(spring_constant) and np.isfinite(damping)):
            raise ValueError(
                f"Spring parameters must be finite: k={spring_constant}, γ={damping}"
            )
        if spring_constant <= 0 or damping < 0:
            raise ValueError(
                f"Invalid spring parameters: k={spring_constant}, γ={damping}"
            )
        self._spring_k = spring_constant
        self._gamma = damping
        logger.debug(f"Spring parameters set: k={spring_constant}, γ={damping}")

    def refresh_acceleration(self, dt: float, target: ScreenTarget) -> None:
        """
        Advance the test particle by one time step.

        Args:
            dt: Time step (seconds)
            target: Current screen position of the device (pixels)
        """
        _check_dt(dt)
        s = self.spring
        k, gamma, mass = self._spring_k, self._gamma, self.config.mass

        # The Z-axis uses the damping constant as its spring coefficient
        force_x = k * (target.x - s.position_x)
        force_z = gamma * (target.z - s.position_z)

        s.accel_x = force_x / mass
        s.accel_z = force_z / mass

        s.velocity_x += s.accel_x * dt
        s.velocity_z += s.accel_z * dt

        s.position_x += s.velocity_x * dt
        s.position_z += s.velocity_z * dt

        # Damp relative to the housing, not to the lab frame
        s.position_x += gamma * (target.x - s.position_x) * dt
        s.position_z += gamma * (target.z - s.position_z) * dt

    def update(self, orientation: Orientation) -> Vector3:
        """
        Recompute the true acceleration for the current orientation.

        Args:
            orientation: Device orientation

        Returns:
            Clamped acceleration in body frame (m/s²)
        """
        mpp = self.config.meters_per_pixel

        # Device acceleration is opposite to the lab-frame particle acceleration
        linear = Vector3(-self.spring.accel_x * mpp, 0.0, -self.spring.accel_z * mpp)
        self._linear_component = linear.rotate_world_to_body(orientation)

        gravity = Vector3(0.0, 0.0, self.config.gravity)
        self._gravity_component = gravity.rotate_world_to_body(orientation)

        total = self._gravity_component
        if self._show_linear:
            total = total + self._linear_component

        self._true_value = total.clamp(self.saturation_limit)
        return self._true_value

    def update_readout(self, now_ms: int) -> bool:
        return self.sampler.on_tick(self._true_value.to_array(), now_ms)


class GyroscopeEngine:
    """
    Gyroscope model differentiating successive orientation samples.

    The reference angle of each axis moves 1/20 of the way toward the
    current angle per tick, so it trails the true angle while motion
    continues. Changes within the dead zone read as exactly zero.
    """

    sensor_type = SensorType.GYROSCOPE
    AXES = ("pitch", "yaw", "roll")

    def __init__(self, config: Optional[GyroscopeConfig] = None):
        self.config = config or GyroscopeConfig()
        self.sampler = SensorSampler(self.sensor_type.value, 3, self.config.sampler)
        self.axes = {axis: GyroAxisState() for axis in self.AXES}
        self._radii = {
            "pitch": self.config.radius_pitch,
            "yaw": self.config.radius_yaw,
            "roll": self.config.radius_roll,
        }
        logger.info(f"Gyroscope initialized: radii={self._radii}")

    @property
    def true_value(self) -> GyroscopeReading:
        return GyroscopeReading(
            pitch=self.axes["pitch"].angular_velocity,
            yaw=self.axes["yaw"].angular_velocity,
            roll=self.axes["roll"].angular_velocity,
        )

    @property
    def latest_reading(self) -> GyroscopeReading:
        return GyroscopeReading.from_array(self.sampler.latest)

    def _refresh_axis(self, axis: str, current: float, dt: float) -> None:
        state = self.axes[axis]
        delta_deg = current - state.last_sampled_angle

        if abs(delta_deg) > self.config.dead_zone_deg:
            radius = self._radii[axis]
            distance = np.radians(delta_deg) * radius
            tangential_speed = distance / dt
            state.angular_velocity = tangential_speed / radius
            state.last_sampled_angle += delta_deg / self.config.lag_divisor
        else:
            state.angular_velocity = 0.0

    def update(self, dt: float, orientation: Orientation) -> GyroscopeReading:
        """
        Refresh angular speed of all axes.

        Args:
            dt: Time step (seconds)
            orientation: Current device orientation (degrees)

        Returns:
            Instantaneous angular velocities (rad/s)
        """
        _check_dt(dt)
        self._refresh_axis("pitch", orientation.pitch, dt)
        self._refresh_axis("yaw", orientation.yaw, dt)
        self._refresh_axis("roll", orientation.roll, dt)
        return self.true_value

    def update_readout(self, now_ms: int) -> bool:
        return self.sampler.on_tick(self.true_value.to_array(), now_ms)


class MagnetometerEngine:
    """Earth magnetic field seen from the rotated device."""

    sensor_type = SensorType.MAGNETIC_FIELD

    # nT to µT
    NANO_TO_MICRO = 0.001

    def __init__(self, config: Optional[MagnetometerConfig] = None):
        self.config = config or MagnetometerConfig()
        self.sampler = SensorSampler(self.sensor_type.value, 3, self.config.sampler)
        self._true_value = Vector3()
        logger.info(
            f"Magnetometer initialized: N={self.config.north} nT, "
            f"E={self.config.east} nT, V={self.config.vertical} nT"
        )

    @property
    def field_lab_frame(self) -> Vector3:
        """Earth field in the lab frame (µT)."""
        c = self.config
        return Vector3(c.east, c.north, -c.vertical).scale(self.NANO_TO_MICRO)

    @property
    def true_value(self) -> Vector3:
        return self._true_value

    @property
    def latest_reading(self) -> Vector3:
        return Vector3.from_array(self.sampler.latest)

    def update(self, orientation: Orientation) -> Vector3:
        self._true_value = self.field_lab_frame.rotate_world_to_body(orientation)
        return self._true_value

    def update_readout(self, now_ms: int) -> bool:
        return self.sampler.on_tick(self._true_value.to_array(), now_ms)
