"""
Sensor Interface Package
=========================
Boundary types of the sensor simulator:
- Orientation and screen-target inputs
- Sensor readout values and snapshots
- Validated configuration models
"""

from .models import (
    EARTH_GRAVITY,
    DEFAULT_SAMPLE_PERIOD_MS,
    SensorType,
    SensorDelay,
    Orientation,
    ScreenTarget,
    GyroscopeReading,
    SamplerConfig,
    AccelerometerConfig,
    GyroscopeConfig,
    MagnetometerConfig,
    ClockConfig,
    SimulatorConfig,
    SensorReadoutSnapshot,
)

__all__ = [
    "EARTH_GRAVITY",
    "DEFAULT_SAMPLE_PERIOD_MS",
    "SensorType",
    "SensorDelay",
    "Orientation",
    "ScreenTarget",
    "GyroscopeReading",
    "SamplerConfig",
    "AccelerometerConfig",
    "GyroscopeConfig",
    "MagnetometerConfig",
    "ClockConfig",
    "SimulatorConfig",
    "SensorReadoutSnapshot",
]
