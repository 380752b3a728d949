"""
Main vision module orchestrator.

Wires the camera, the OpenCV vision, the optional PhotonVision client,
the LED indicator and the video stream together and runs the detection
loop.
"""

import asyncio
import logging
import signal
from dataclasses import dataclass
from typing import Optional

from .config import Config
from .interfaces import IImageSink
from ..indicators.led_indicator import LedIndicator, SimulatedLedStrip
from ..photon.photon_vision_raw import PhotonVisionRaw
from ..utils import RateLimit, generate_apriltag
from ..vision.image_io import CameraSink, MjpegStreamSource, StaticFrameSink
from ..vision.opencv_detector import TargetInfo
from ..vision.opencv_vision import ObjectType, OpenCvVision, VisionInfo

logger = logging.getLogger(__name__)


@dataclass
class ModuleStatus:
    """Status of the vision module."""
    is_running: bool = False
    camera_active: bool = False
    stream_active: bool = False
    photon_enabled: bool = False
    object_type: ObjectType = ObjectType.NONE
    frames_processed: int = 0
    targets_detected: int = 0
    last_target: Optional[str] = None
    error_message: Optional[str] = None


class VisionModule:
    """
    Orchestrator for the robot vision adapters.

    Attributes:
        config: Module configuration
        sink: Frame source for the OpenCV vision
        stream: MJPEG video output, None if disabled
        opencv_vision: OpenCV pipeline selector
        photon_vision: PhotonVision wrapper, None if disabled
        led_indicator: LED indicator, None if disabled

    Example:
        >>> module = VisionModule(Config.from_file("config.json"))
        >>> await module.run()
    """

    def __init__(self, config: Config, sink: Optional[IImageSink] = None):
        """
        Initialize the vision module.

        Args:
            config: Module configuration settings
            sink: Frame source, None to pick one from the config
        """
        self.config = config
        self._status = ModuleStatus()
        self._setup_logging()

        if sink is not None:
            self.sink = sink
        elif config.simulation_mode:
            self.sink = StaticFrameSink(generate_apriltag(1, size_pixels=240))
        else:
            self.sink = CameraSink(config.camera)

        self.stream = MjpegStreamSource(config.stream) if config.stream.enabled else None

        self.led_indicator: Optional[LedIndicator] = None
        if config.led.enabled:
            self.led_indicator = LedIndicator(
                SimulatedLedStrip(), config.led.on_duration_sec, config.led.on_target_tolerance_m
            )

        self.opencv_vision = OpenCvVision(
            "OpenCvVision",
            config.camera.num_image_buffers,
            VisionInfo.from_camera_config(config.camera),
            self.sink,
            self.stream,
        )

        self.photon_vision: Optional[PhotonVisionRaw] = None
        if config.photon.enabled and not config.simulation_mode:
            self.photon_vision = PhotonVisionRaw(
                config.photon.table_name,
                config.photon.camera_name,
                self.led_indicator,
                server=config.photon.server,
                client_identity=config.photon.client_identity,
            )
            self._status.photon_enabled = True

        self._rate_limit = RateLimit(config.vision.detection_rate_hz)
        self._detection_task: Optional[asyncio.Task] = None
        self._shutdown_event = asyncio.Event()

        logger.info("VisionModule initialized")

    def _setup_logging(self) -> None:
        """Configure logging based on config."""
        log_level = getattr(logging, self.config.log_level.upper(), logging.INFO)

        logging.basicConfig(
            level=log_level,
            format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

        if self.config.debug_mode:
            logging.getLogger("robot_vision").setLevel(logging.DEBUG)

    def _setup_signal_handlers(self) -> None:
        """Setup signal handlers for graceful shutdown."""
        def signal_handler(sig, frame):
            logger.info(f"Received signal {sig}, shutting down...")
            self._shutdown_event.set()

        signal.signal(signal.SIGINT, signal_handler)
        signal.signal(signal.SIGTERM, signal_handler)

    def _apply_vision_config(self) -> None:
        try:
            object_type = ObjectType[self.config.vision.initial_object_type.upper()]
        except KeyError:
            raise ValueError(
                f"Unknown object type: {self.config.vision.initial_object_type}. "
                f"Valid options: {[t.name for t in ObjectType]}"
            )

        self.opencv_vision.set_detect_object_type(object_type)
        self.opencv_vision.set_annotate_enabled(self.config.vision.annotate_enabled)
        self.opencv_vision.set_video_output(self.config.vision.video_output_step)
        self._status.object_type = object_type

    async def start(self) -> bool:
        """
        Start the vision module.

        Returns:
            True if started successfully
        """
        logger.info("Starting VisionModule...")

        try:
            self._apply_vision_config()

            if isinstance(self.sink, CameraSink):
                if not self.sink.start():
                    logger.error("Failed to start camera")
                    self._status.error_message = "Camera initialization failed"
                    return False
            self._status.camera_active = True

            if self.stream is not None:
                await self.stream.start()
                self._status.stream_active = True

            self._detection_task = asyncio.create_task(self._detection_loop())
            self._status.is_running = True

            logger.info("VisionModule started successfully")
            return True

        except (OSError, ValueError) as e:
            logger.error(f"Failed to start VisionModule: {e}")
            self._status.error_message = str(e)
            return False

    async def stop(self) -> None:
        """Stop the vision module and cleanup resources."""
        logger.info("Stopping VisionModule...")

        self._status.is_running = False

        if self._detection_task and not self._detection_task.done():
            self._detection_task.cancel()
            try:
                await self._detection_task
            except asyncio.CancelledError:
                pass

        if self.stream is not None:
            await self.stream.stop()
            self._status.stream_active = False

        if isinstance(self.sink, CameraSink):
            self.sink.stop()
        self._status.camera_active = False

        if self.led_indicator is not None:
            self.led_indicator.reset()

        logger.info("VisionModule stopped")

    async def run(self) -> None:
        """
        Run the module until shutdown is requested.

        This is a blocking call that runs the main event loop.
        """
        self._setup_signal_handlers()

        if not await self.start():
            logger.error("Failed to start module, exiting")
            return

        logger.info("Module running, waiting for shutdown...")
        await self._shutdown_event.wait()

        await self.stop()

    def request_shutdown(self) -> None:
        self._shutdown_event.set()

    def process_once(self) -> Optional[TargetInfo]:
        """
        Run one detection cycle.

        Returns:
            The best OpenCV target, or None if nothing was detected
        """
        target = self.opencv_vision.get_detected_target_info()
        self._status.frames_processed += 1

        if target is not None:
            self._status.targets_detected += 1
            self._status.last_target = str(target)
            if self.led_indicator is not None:
                self.led_indicator.set_detected_object_type(
                    self.opencv_vision.get_detect_object_type()
                )

        if self.photon_vision is not None:
            photon_object = self.photon_vision.get_detected_object()
            if photon_object is not None:
                logger.debug(f"PhotonVision: {photon_object}")

        return target

    async def _detection_loop(self) -> None:
        """Background task running the detection cycle."""
        while self._status.is_running:
            try:
                await self._rate_limit.wait()
                self.process_once()
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Detection loop error: {e}")
                await asyncio.sleep(1)

    def set_next_object_type(self) -> ObjectType:
        """Cycle the OpenCV vision to the next object type."""
        self.opencv_vision.set_next_object_type()
        self._status.object_type = self.opencv_vision.get_detect_object_type()
        logger.info(f"Detecting {self._status.object_type.name}")
        return self._status.object_type

    def get_status(self) -> ModuleStatus:
        """Get current module status."""
        return self._status
