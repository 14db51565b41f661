"""
Simulation Package
===================
Sensor simulation engine: rotation math, sensor physics, readout
sampling and the tick loop.
"""

from .vector import (
    RotationMatrices,
    Vector3,
)
from .sampling import SensorSampler
from .sensor_engines import (
    SpringState,
    GyroAxisState,
    AccelerometerEngine,
    GyroscopeEngine,
    MagnetometerEngine,
)
from .sensor_simulator import SensorSimulator, format_readout
from .clock import SimulationClock

__all__ = [
    "RotationMatrices",
    "Vector3",
    "SensorSampler",
    "SpringState",
    "GyroAxisState",
    "AccelerometerEngine",
    "GyroscopeEngine",
    "MagnetometerEngine",
    "SensorSimulator",
    "format_readout",
    "SimulationClock",
]
