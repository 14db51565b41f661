"""
Test Suite for Shared Models
=============================
Orientation normalization, configuration loading and readout snapshots.
"""

import pytest
import numpy as np
import yaml
from pydantic import ValidationError

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from sensor_interface import (
    EARTH_GRAVITY,
    Orientation,
    SensorDelay,
    SensorReadoutSnapshot,
    SensorType,
    SimulatorConfig,
)
from simulation import RotationMatrices


CONFIG_PATH = Path(__file__).parent.parent / "config" / "simulator_config.yaml"


class TestOrientation:
    """Tests for orientation normalization."""

    @pytest.mark.parametrize("raw, expected", [
        ((370, 0, -10), (10, 0, 350)),
        ((10, 100, 20), (190, 80, 200)),
        ((0, -120, 0), (180, -60, 180)),
        ((0, 270, 0), (0, -90, 0)),
        ((0, 181, 0), (180, -1, 180)),
        ((45, 90, 30), (45, 90, 30)),
    ])
    def test_known_cases(self, raw, expected):
        result = Orientation(*raw).normalized()
        assert result.as_tuple() == pytest.approx(expected)

    def test_ranges_and_same_rotation(self):
        rng = np.random.default_rng(7)

        for yaw, pitch, roll in rng.uniform(-1000, 1000, size=(200, 3)):
            raw = Orientation(yaw, pitch, roll)
            norm = raw.normalized()

            assert 0.0 <= norm.yaw < 360.0
            assert 0.0 <= norm.roll < 360.0
            assert -90.0 <= norm.pitch <= 90.0
            np.testing.assert_array_almost_equal(
                RotationMatrices.yaw_pitch_roll(norm),
                RotationMatrices.yaw_pitch_roll(raw),
                decimal=9
            )

    def test_normalized_is_idempotent(self):
        once = Orientation(-725, 200, 1000).normalized()
        assert once.normalized().as_tuple() == pytest.approx(once.as_tuple())

    def test_tiny_negative_angle_stays_below_360(self):
        norm = Orientation(-1e-15, 0, 0).normalized()
        assert 0.0 <= norm.yaw < 360.0

    @pytest.mark.parametrize("bad", [float("nan"), float("inf"), float("-inf")])
    def test_non_finite_rejected(self, bad):
        with pytest.raises(ValueError):
            Orientation(0, bad, 0)


class TestSimulatorConfig:
    """Tests for configuration models."""

    def test_defaults(self):
        config = SimulatorConfig.from_dict(None)

        assert config.accelerometer.spring_constant == 500
        assert config.accelerometer.damping == 50
        assert config.accelerometer.meters_per_pixel == pytest.approx(1 / 3000)
        assert config.gyroscope.radius_yaw == 0.15
        assert config.magnetometer.north == 22874.1
        assert config.clock.interval_ms == 10
        assert config.accelerometer.sampler.sample_period_ms == SensorDelay.NORMAL

    def test_saturation_limit(self):
        config = SimulatorConfig()
        assert config.accelerometer.saturation_limit == pytest.approx(EARTH_GRAVITY * 10)

    def test_nested_override(self):
        config = SimulatorConfig.from_dict({
            "gyroscope": {"sampler": {"averaging": False, "sample_period_ms": 20}},
            "accelerometer": {"spring_constant": 800},
        })

        assert config.gyroscope.sampler.averaging is False
        assert config.gyroscope.sampler.sample_period_ms == 20
        assert config.accelerometer.spring_constant == 800
        assert config.accelerometer.damping == 50

    def test_negative_period_rejected(self):
        with pytest.raises(ValidationError):
            SimulatorConfig.from_dict({"magnetometer": {"sampler": {"sample_period_ms": -1}}})

    def test_non_positive_spring_rejected(self):
        with pytest.raises(ValidationError):
            SimulatorConfig.from_dict({"accelerometer": {"spring_constant": 0}})

    @pytest.mark.parametrize("field", ["spring_constant", "damping"])
    def test_infinite_spring_parameter_rejected(self, field):
        with pytest.raises(ValidationError):
            SimulatorConfig.from_dict({"accelerometer": {field: float("inf")}})

    def test_shipped_yaml_matches_defaults(self):
        with open(CONFIG_PATH) as f:
            data = yaml.safe_load(f)

        config = SimulatorConfig.from_dict(data)
        defaults = SimulatorConfig()

        assert config.accelerometer.meters_per_pixel == pytest.approx(defaults.accelerometer.meters_per_pixel)
        assert config.gyroscope == defaults.gyroscope
        assert config.magnetometer == defaults.magnetometer
        assert config.clock == defaults.clock


class TestSensorReadoutSnapshot:
    """Tests for published snapshots."""

    def test_is_immutable(self):
        snapshot = SensorReadoutSnapshot(accel_z=9.8)
        with pytest.raises(ValidationError):
            snapshot.accel_z = 0.0

    def test_vectors(self):
        snapshot = SensorReadoutSnapshot(accel_x=3.0, accel_z=4.0, gyro_yaw=0.5, mag_y=22.0)

        np.testing.assert_array_equal(snapshot.acceleration_vector, [3.0, 0.0, 4.0])
        np.testing.assert_array_equal(snapshot.angular_velocity_vector, [0.0, 0.5, 0.0])
        np.testing.assert_array_equal(snapshot.magnetic_field_vector, [0.0, 22.0, 0.0])
        assert snapshot.acceleration_magnitude == pytest.approx(5.0)

    def test_duplicate_published_rejected(self):
        with pytest.raises(ValidationError):
            SensorReadoutSnapshot(published=[SensorType.GYROSCOPE, SensorType.GYROSCOPE])

    def test_to_dict(self):
        snapshot = SensorReadoutSnapshot(tick=3, published=[SensorType.MAGNETIC_FIELD])
        data = snapshot.to_dict()

        assert data["tick"] == 3
        assert data["published"] == [SensorType.MAGNETIC_FIELD]
        assert "timestamp" in data


if __name__ == "__main__":
    pytest.main([__file__, "-v", "--tb=short"])
