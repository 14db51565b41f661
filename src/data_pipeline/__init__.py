"""
Data Pipeline Package
======================
Input hand-off and readout publication for the sensor simulator.
"""

from .data_manager import (
    DataStreamConfig,
    InputSnapshot,
    InputStateManager,
    ReadoutStateManager,
)

__all__ = [
    "DataStreamConfig",
    "InputSnapshot",
    "InputStateManager",
    "ReadoutStateManager",
]
