"""
Sensor Interface - Data Models
===============================
Value types and pydantic models shared across the simulator.

The orientation and screen target are the only inputs the simulation core
consumes; readout snapshots are the only thing it emits.
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional, List, Dict, Any
from pydantic import BaseModel, Field, field_validator
import numpy as np


# Physical constants
EARTH_GRAVITY = 9.80665  # m/s²


class SensorType(str, Enum):
    """Simulated sensor types."""
    ACCELEROMETER = "accelerometer"
    GYROSCOPE = "gyroscope"
    MAGNETIC_FIELD = "magnetic field"


class SensorDelay(int, Enum):
    """Standard readout delays in milliseconds."""
    FASTEST = 0
    GAME = 20
    UI = 60
    NORMAL = 200


DEFAULT_SAMPLE_PERIOD_MS = SensorDelay.NORMAL.value


# =============================================================================
# INPUT VALUES
# =============================================================================

def _wrap_360(angle: float) -> float:
    wrapped = angle % 360.0
    # -1e-15 % 360 rounds up to 360.0
    if wrapped >= 360.0:
        wrapped -= 360.0
    return wrapped


@dataclass(frozen=True)
class Orientation:
    """
    Device orientation in degrees.

    Attributes:
        yaw: Rotation around the vertical Z-axis
        pitch: Rotation around the Y-axis
        roll: Rotation around the X-axis
    """
    yaw: float = 0.0
    pitch: float = 0.0
    roll: float = 0.0

    def __post_init__(self):
        for name in ("yaw", "pitch", "roll"):
            value = getattr(self, name)
            if not np.isfinite(value):
                raise ValueError(f"Orientation {name} must be finite, got {value}")

    def normalized(self) -> Orientation:
        """
        Fold the angles into the canonical ranges.

        Yaw and roll end up in [0, 360), pitch in [-90, 90]. A pitch that
        overflows ±90° is mirrored and yaw/roll are turned by 180° so the
        result still describes the same physical rotation.

        Returns:
            Normalized orientation
        """
        yaw, roll = self.yaw, self.roll
        pitch = ((self.pitch + 180.0) % 360.0) - 180.0

        if pitch > 90.0:
            pitch = 180.0 - pitch
            yaw += 180.0
            roll += 180.0
        elif pitch < -90.0:
            pitch = -180.0 - pitch
            yaw += 180.0
            roll += 180.0

        return Orientation(yaw=_wrap_360(yaw), pitch=pitch, roll=_wrap_360(roll))

    def as_tuple(self) -> tuple:
        return (self.yaw, self.pitch, self.roll)


@dataclass(frozen=True)
class ScreenTarget:
    """Screen-space displacement of the device (pixels)."""
    x: float = 0.0
    z: float = 0.0

    def __post_init__(self):
        for name in ("x", "z"):
            value = getattr(self, name)
            if not np.isfinite(value):
                raise ValueError(f"Screen target {name} must be finite, got {value}")


@dataclass(frozen=True)
class GyroscopeReading:
    """Angular velocity per axis (rad/s)."""
    pitch: float = 0.0
    yaw: float = 0.0
    roll: float = 0.0

    @classmethod
    def from_array(cls, arr) -> GyroscopeReading:
        """Create reading from [pitch, yaw, roll] array."""
        return cls(pitch=float(arr[0]), yaw=float(arr[1]), roll=float(arr[2]))

    def to_array(self) -> np.ndarray:
        return np.array([self.pitch, self.yaw, self.roll])


# =============================================================================
# CONFIGURATION MODELS
# =============================================================================

class SamplerConfig(BaseModel):
    """Readout policy shared by every sensor."""
    enabled: bool = True
    averaging: bool = True
    sample_period_ms: int = Field(DEFAULT_SAMPLE_PERIOD_MS, ge=0)


class AccelerometerConfig(BaseModel):
    """Spring-mass-damper parameters of the accelerometer test particle."""
    sampler: SamplerConfig = Field(default_factory=SamplerConfig)

    spring_constant: float = Field(500.0, gt=0, allow_inf_nan=False)
    damping: float = Field(50.0, ge=0, allow_inf_nan=False)

    # Only the ratio k/m enters the simulation
    mass: float = Field(1.0, gt=0)

    meters_per_pixel: float = Field(1.0 / 3000.0, gt=0)
    gravity: float = Field(EARTH_GRAVITY, gt=0)

    # Sensor range in multiples of g
    saturation_factor: float = Field(10.0, gt=0)

    show_linear_acceleration: bool = True

    @property
    def saturation_limit(self) -> float:
        """Clamp limit in m/s²."""
        return self.gravity * self.saturation_factor


class GyroscopeConfig(BaseModel):
    """Gyroscope differentiation parameters."""
    sampler: SamplerConfig = Field(default_factory=SamplerConfig)

    # Rotation radius in meters
    radius_pitch: float = Field(0.1, gt=0)
    radius_yaw: float = Field(0.15, gt=0)
    radius_roll: float = Field(0.1, gt=0)

    dead_zone_deg: float = Field(0.10, ge=0)
    lag_divisor: float = Field(20.0, ge=1)


class MagnetometerConfig(BaseModel):
    """Earth magnetic field in the lab frame (nT)."""
    sampler: SamplerConfig = Field(default_factory=SamplerConfig)

    north: float = 22874.1
    east: float = 5939.5
    vertical: float = 43180.5


class ClockConfig(BaseModel):
    """Tick loop timing."""
    interval_ms: float = Field(10.0, gt=0)


class SimulatorConfig(BaseModel):
    """Top-level simulator configuration."""
    accelerometer: AccelerometerConfig = Field(default_factory=AccelerometerConfig)
    gyroscope: GyroscopeConfig = Field(default_factory=GyroscopeConfig)
    magnetometer: MagnetometerConfig = Field(default_factory=MagnetometerConfig)
    clock: ClockConfig = Field(default_factory=ClockConfig)

    history_size: int = Field(1000, ge=0)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> SimulatorConfig:
        """Build config from a parsed YAML mapping (None means defaults)."""
        return cls.model_validate(data or {})


# =============================================================================
# AGGREGATE DATA MODELS
# =============================================================================

class SensorReadoutSnapshot(BaseModel):
    """
    Published sensor readouts at the end of one tick.

    Values are the most recently published readouts, which are not
    necessarily the values computed on this tick.
    """
    model_config = {"frozen": True}

    timestamp: datetime = Field(default_factory=datetime.now)
    tick: int = 0

    # Orientation used for this tick (degrees)
    yaw: float = 0.0
    pitch: float = 0.0
    roll: float = 0.0

    # Accelerometer (m/s²)
    accel_x: float = 0.0
    accel_y: float = 0.0
    accel_z: float = 0.0

    # Gyroscope (rad/s)
    gyro_pitch: float = 0.0
    gyro_yaw: float = 0.0
    gyro_roll: float = 0.0

    # Magnetometer (µT)
    mag_x: float = 0.0
    mag_y: float = 0.0
    mag_z: float = 0.0

    published: List[SensorType] = Field(default_factory=list)

    @field_validator("published")
    @classmethod
    def _unique_sensors(cls, v):
        if len(set(v)) != len(v):
            raise ValueError("published sensors must be unique")
        return v

    @property
    def acceleration_vector(self) -> np.ndarray:
        return np.array([self.accel_x, self.accel_y, self.accel_z])

    @property
    def angular_velocity_vector(self) -> np.ndarray:
        return np.array([self.gyro_pitch, self.gyro_yaw, self.gyro_roll])

    @property
    def magnetic_field_vector(self) -> np.ndarray:
        return np.array([self.mag_x, self.mag_y, self.mag_z])

    @property
    def acceleration_magnitude(self) -> float:
        """Total acceleration magnitude in m/s²."""
        return float(np.linalg.norm(self.acceleration_vector))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return self.model_dump()
