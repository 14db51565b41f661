"""
Mobile Sensor Simulator - Main Application Entry Point
=======================================================
Headless runner for the simulated accelerometer, gyroscope and
magnetometer.

It initializes the simulator from a YAML configuration and provides:
- A live tick loop driven by a scripted orientation sweep
- A deterministic quick simulation with injected time steps
"""

from __future__ import annotations

import asyncio
import signal
import sys
from pathlib import Path
from typing import Optional
import argparse

import numpy as np
import yaml
from loguru import logger

# Add src to path for imports
SRC_DIR = Path(__file__).parent
PROJECT_ROOT = SRC_DIR.parent
sys.path.insert(0, str(SRC_DIR))

from sensor_interface import SimulatorConfig
from simulation import SensorSimulator, SimulationClock


class SensorSimApplication:
    """
    Main application class for the sensor simulator.

    Owns the simulator and its clock and plays the role of the external
    input layer by sweeping the orientation over time.
    """

    VERSION = "1.0.0"

    def __init__(self, config_path: Optional[Path] = None):
        """
        Initialize application.

        Args:
            config_path: Path to configuration YAML file
        """
        self.config_path = config_path or PROJECT_ROOT / "config" / "simulator_config.yaml"
        self.config = SimulatorConfig.from_dict(self._load_config())

        self._shutdown_event = asyncio.Event()

        self.simulator = SensorSimulator(self.config)
        self.clock = SimulationClock(self.simulator)

        logger.info(f"Sensor Simulator v{self.VERSION} initialized")

    def _load_config(self) -> dict:
        """Load configuration from YAML file."""
        if self.config_path.exists():
            with open(self.config_path, 'r') as f:
                config = yaml.safe_load(f)
                logger.info(f"Configuration loaded from {self.config_path}")
                return config or {}
        else:
            logger.warning(f"Config file not found: {self.config_path}")
            return {}

    def apply_motion(self, t: float, yaw_rate: float, shake_px: float) -> None:
        """
        Set the scripted input for time t.

        Args:
            t: Seconds since start
            yaw_rate: Yaw sweep rate (deg/s)
            shake_px: Amplitude of the sideways screen motion (pixels)
        """
        yaw = yaw_rate * t
        pitch = 30.0 * np.sin(2 * np.pi * 0.1 * t)
        self.simulator.set_orientation(yaw, pitch, 0.0)
        self.simulator.set_screen_target(shake_px * np.sin(2 * np.pi * 0.5 * t), 0.0)

    def run_quick_simulation(
        self,
        duration_s: float,
        yaw_rate: float,
        shake_px: float,
        dt: float = 0.01
    ) -> dict:
        """
        Run a deterministic simulation with injected time steps.

        Args:
            duration_s: Simulated duration in seconds
            yaw_rate: Yaw sweep rate (deg/s)
            shake_px: Screen shake amplitude (pixels)
            dt: Time step in seconds

        Returns:
            Dictionary with the final readouts
        """
        num_steps = int(duration_s / dt)
        logger.info(f"Running quick simulation: {duration_s}s, {num_steps} ticks")

        for i in range(num_steps):
            t = i * dt
            self.apply_motion(t, yaw_rate, shake_px)
            self.clock.tick(dt=dt, now_ms=int(round(t * 1000)))

        results = {
            "duration_s": duration_s,
            "ticks": num_steps,
            **self.simulator.describe_readouts(),
            "publishes": {
                engine.sensor_type.value: engine.sampler.publish_count
                for engine in self.simulator.engines
            },
        }

        logger.info("Quick simulation complete")
        return results

    async def _drive_inputs(self, yaw_rate: float, shake_px: float) -> None:
        loop = asyncio.get_running_loop()
        start = loop.time()
        while not self._shutdown_event.is_set():
            self.apply_motion(loop.time() - start, yaw_rate, shake_px)
            await asyncio.sleep(0.05)

    async def _display(self, period_s: float) -> None:
        while not self._shutdown_event.is_set():
            await asyncio.sleep(period_s)
            readouts = self.simulator.describe_readouts()
            print("  ".join(f"{name}: [{text}]" for name, text in readouts.items()))

    async def run(
        self,
        yaw_rate: float,
        shake_px: float,
        duration_s: Optional[float] = None
    ) -> None:
        """
        Run the live tick loop until shutdown or the duration elapses.

        Args:
            yaw_rate: Yaw sweep rate (deg/s)
            shake_px: Screen shake amplitude (pixels)
            duration_s: Optional run time limit
        """
        self._print_status()

        tasks = [
            asyncio.create_task(self.clock.run_async(self._shutdown_event)),
            asyncio.create_task(self._drive_inputs(yaw_rate, shake_px)),
            asyncio.create_task(self._display(0.5)),
        ]

        try:
            if duration_s is not None:
                try:
                    await asyncio.wait_for(self._shutdown_event.wait(), timeout=duration_s)
                except asyncio.TimeoutError:
                    self.request_shutdown()
            else:
                await self._shutdown_event.wait()
        finally:
            self.request_shutdown()
            await asyncio.gather(*tasks, return_exceptions=True)
            logger.info(f"Clock statistics: {self.clock.get_statistics()}")

    def _print_status(self) -> None:
        """Print current application status."""
        print("\n" + "=" * 60)
        print(f"  Sensor Simulator v{self.VERSION}")
        print("=" * 60)
        print(f"  Tick interval:  {self.config.clock.interval_ms} ms")
        for engine in self.simulator.engines:
            sampler = engine.sampler
            print(
                f"  {engine.sensor_type.value:<15} {sampler.sample_period_ms} ms, "
                f"{'averaging' if sampler.averaging else 'snapshot'}, "
                f"{'enabled' if sampler.enabled else 'disabled'}"
            )
        print("=" * 60 + "\n")

    def request_shutdown(self) -> None:
        """Request application shutdown."""
        self._shutdown_event.set()


def setup_logging(verbose: bool = False) -> None:
    """Configure logging."""
    logger.remove()  # Remove default handler

    level = "DEBUG" if verbose else "INFO"

    logger.add(
        sys.stderr,
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>",
        level=level,
        colorize=True
    )


async def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Mobile Sensor Simulator - accelerometer, gyroscope and magnetometer readouts"
    )
    parser.add_argument(
        "--config", "-c",
        type=Path,
        default=None,
        help="Path to configuration file"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging"
    )
    parser.add_argument(
        "--quick-sim",
        action="store_true",
        help="Run a deterministic simulation and exit"
    )
    parser.add_argument(
        "--yaw-rate",
        type=float,
        default=20.0,
        help="Yaw sweep rate in deg/s"
    )
    parser.add_argument(
        "--shake",
        type=float,
        default=30.0,
        help="Sideways screen shake amplitude in pixels"
    )
    parser.add_argument(
        "--duration",
        type=float,
        default=None,
        help="Run duration in seconds (quick simulation defaults to 10)"
    )

    args = parser.parse_args()

    setup_logging(args.verbose)

    app = SensorSimApplication(config_path=args.config)

    if args.quick_sim:
        results = app.run_quick_simulation(
            duration_s=args.duration or 10.0,
            yaw_rate=args.yaw_rate,
            shake_px=args.shake
        )
        print("\n=== Simulation Results ===")
        for key, value in results.items():
            print(f"  {key}: {value}")
        return

    def signal_handler(sig, frame):
        logger.info("Received shutdown signal")
        app.request_shutdown()

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    print("Sensor simulator is running. Press Ctrl+C to stop.")
    await app.run(args.yaw_rate, args.shake, duration_s=args.duration)


if __name__ == "__main__":
    asyncio.run(main())
