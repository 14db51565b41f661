"""
Vector and Rotation Utilities
==============================
Immutable 3D vector used by every sensor model, plus the rotation
matrices that take lab-frame quantities into the device body frame.

Coordinate System (lab frame):
- X: East
- Y: North
- Z: Up

The device orientation is applied as R = Rz(yaw) @ Ry(pitch) @ Rx(roll),
which rotates a body-frame vector into the lab frame. Sensors see lab
quantities (gravity, Earth field) through the inverse, R.T.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from sensor_interface import Orientation


class RotationMatrices:
    """
    Rotation matrix utilities for device orientation.

    All angles are in radians.
    """

    @staticmethod
    def Rx(theta: float) -> NDArray:
        """
        Rotation matrix around X-axis (roll).

        Args:
            theta: Rotation angle in radians

        Returns:
            3x3 rotation matrix
        """
        c, s = np.cos(theta), np.sin(theta)
        return np.array([
            [1, 0, 0],
            [0, c, -s],
            [0, s, c]
        ])

    @staticmethod
    def Ry(theta: float) -> NDArray:
        """Rotation matrix around Y-axis (pitch)."""
        c, s = np.cos(theta), np.sin(theta)
        return np.array([
            [c, 0, s],
            [0, 1, 0],
            [-s, 0, c]
        ])

    @staticmethod
    def Rz(theta: float) -> NDArray:
        """Rotation matrix around Z-axis (yaw)."""
        c, s = np.cos(theta), np.sin(theta)
        return np.array([
            [c, -s, 0],
            [s, c, 0],
            [0, 0, 1]
        ])

    @staticmethod
    def yaw_pitch_roll(orientation: Orientation) -> NDArray:
        """
        Body-to-lab rotation for a device orientation.

        R_total = R_z(yaw) @ R_y(pitch) @ R_x(roll)

        Args:
            orientation: Device orientation in degrees

        Returns:
            3x3 combined rotation matrix
        """
        yaw, pitch, roll = np.radians(orientation.as_tuple())
        return (
            RotationMatrices.Rz(yaw)
            @ RotationMatrices.Ry(pitch)
            @ RotationMatrices.Rx(roll)
        )


@dataclass(frozen=True)
class Vector3:
    """
    3D vector of a physical quantity.

    Whether the value is expressed in the lab or the body frame is
    determined by the caller; it is not stored on the vector.
    """
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    @classmethod
    def from_array(cls, arr) -> Vector3:
        """Create vector from a length-3 array."""
        return cls(float(arr[0]), float(arr[1]), float(arr[2]))

    def to_array(self) -> NDArray:
        """Convert vector to numpy array [x, y, z]."""
        return np.array([self.x, self.y, self.z])

    def scale(self, factor: float) -> Vector3:
        return Vector3(self.x * factor, self.y * factor, self.z * factor)

    def add(self, other: Vector3) -> Vector3:
        return Vector3(self.x + other.x, self.y + other.y, self.z + other.z)

    def __add__(self, other: Vector3) -> Vector3:
        if not isinstance(other, Vector3):
            return NotImplemented
        return self.add(other)

    def __mul__(self, factor: float) -> Vector3:
        return self.scale(factor)

    __rmul__ = __mul__

    def magnitude(self) -> float:
        return float(np.linalg.norm(self.to_array()))

    def clamp(self, limit: float) -> Vector3:
        """
        Clamp every component to [-limit, limit].

        Args:
            limit: Non-negative saturation limit

        Returns:
            Clamped vector
        """
        return Vector3.from_array(np.clip(self.to_array(), -limit, limit))

    def rotate_world_to_body(self, orientation: Orientation) -> Vector3:
        """
        Express a lab-frame vector in the device body frame.

        The device sees the lab through the inverse of its own rotation,
        so the transpose of the yaw-pitch-roll matrix is applied.

        Args:
            orientation: Device orientation in degrees

        Returns:
            Vector in body frame
        """
        R = RotationMatrices.yaw_pitch_roll(orientation)
        return Vector3.from_array(R.T @ self.to_array())
