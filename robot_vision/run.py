#!/usr/bin/env python3
"""
Robot Vision - Main Entry Point

Runs the OpenCV vision (and optionally the PhotonVision client) with an
MJPEG stream of the annotated video output.

Usage:
    python -m robot_vision.run
    python -m robot_vision.run --config /path/to/config.json
    python -m robot_vision.run --simulation
    python -m robot_vision.run --debug
"""

import argparse
import asyncio
import logging
import sys

from robot_vision import VisionModule, Config, ObjectType
from robot_vision.utils import create_default_config_file


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Robot vision adapters",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Run with default configuration
    python -m robot_vision.run

    # Run with custom config file
    python -m robot_vision.run --config /path/to/config.json

    # Run in simulation mode (synthetic frames, no coprocessor)
    python -m robot_vision.run --simulation

    # Detect red blobs and stream on port 5800
    python -m robot_vision.run --object-type REDBLOB --stream-port 5800

    # Generate a default config file
    python -m robot_vision.run --generate-config config.json
        """
    )

    parser.add_argument(
        "--config", "-c",
        type=str,
        default=None,
        help="Path to configuration file (JSON format)"
    )

    parser.add_argument(
        "--simulation", "-s",
        action="store_true",
        help="Run in simulation mode (no real hardware)"
    )

    parser.add_argument(
        "--debug", "-d",
        action="store_true",
        help="Enable debug logging"
    )

    parser.add_argument(
        "--generate-config", "-g",
        type=str,
        metavar="PATH",
        help="Generate a default config file and exit"
    )

    parser.add_argument(
        "--object-type", "-o",
        type=str.upper,
        choices=[t.name for t in ObjectType],
        default=None,
        help="Object type to detect at startup"
    )

    parser.add_argument(
        "--stream-port", "-p",
        type=int,
        default=None,
        help="Override MJPEG stream port"
    )

    parser.add_argument(
        "--photon-camera",
        type=str,
        default=None,
        help="Enable the PhotonVision client for this camera name"
    )

    return parser.parse_args(argv)


def build_config(args) -> Config:
    """Load the configuration and apply command line overrides."""
    if args.config:
        print(f"Loading config from: {args.config}")
        config = Config.from_file(args.config)
    else:
        print("Using default configuration with environment overrides")
        config = Config.from_environment()

    if args.simulation:
        config.simulation_mode = True
        print("Running in SIMULATION mode")

    if args.debug:
        config.debug_mode = True
        config.log_level = "DEBUG"

    if args.object_type:
        config.vision.initial_object_type = args.object_type

    if args.stream_port is not None:
        config.stream.port = args.stream_port

    if args.photon_camera:
        config.photon.enabled = True
        config.photon.camera_name = args.photon_camera

    return config


def main(argv=None):
    """Main entry point."""
    args = parse_args(argv)

    # Generate config file if requested
    if args.generate_config:
        create_default_config_file(args.generate_config)
        print(f"Generated default config at: {args.generate_config}")
        return 0

    config = build_config(args)

    # Setup logging
    log_level = getattr(logging, config.log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=log_level,
        format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    logger = logging.getLogger(__name__)

    # Print configuration summary
    logger.info("=" * 60)
    logger.info("Robot Vision")
    logger.info("=" * 60)
    logger.info(f"Simulation Mode: {config.simulation_mode}")
    logger.info(f"Camera: {config.camera.camera_id}")
    logger.info(f"Object Type: {config.vision.initial_object_type}")
    logger.info(f"Stream Port: {config.stream.port if config.stream.enabled else 'disabled'}")
    logger.info(f"PhotonVision: {config.photon.camera_name if config.photon.enabled else 'disabled'}")
    logger.info("=" * 60)

    # Create and run module
    try:
        module = VisionModule(config)
        asyncio.run(module.run())
        return 0
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 0
    except Exception as e:
        logger.exception(f"Fatal error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
