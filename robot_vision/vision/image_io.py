"""
Frame capture and video output.

CameraSink captures frames from an OpenCV VideoCapture device on a
background thread. MjpegStreamSource keeps the latest output frame and
serves it over HTTP as an MJPEG stream using aiohttp.
"""

import asyncio
import logging
import threading
import time
from typing import Optional

import cv2
import numpy as np
from aiohttp import web

from ..core.config import CameraConfig, StreamConfig
from ..core.interfaces import IImageSink, IImageSource

logger = logging.getLogger(__name__)

MJPEG_BOUNDARY = "frame"


class CameraSink(IImageSink):
    """
    OpenCV VideoCapture backed image sink.

    Example:
        >>> sink = CameraSink(config)
        >>> sink.start()
        >>> frame = sink.grab_frame()
        >>> sink.stop()
    """

    def __init__(self, config: CameraConfig):
        self.config = config
        self._capture: Optional[cv2.VideoCapture] = None
        self._frame: Optional[np.ndarray] = None
        self._frame_lock = threading.Lock()
        self._capture_thread: Optional[threading.Thread] = None
        self._running = False

        logger.info(
            f"CameraSink initialized (camera_id={config.camera_id}, "
            f"resolution={config.resolution_width}x{config.resolution_height})"
        )

    def start(self) -> bool:
        """
        Open the camera and start capturing.

        Returns:
            True if the camera was opened
        """
        if self._running:
            logger.warning("Camera sink already running")
            return True

        cap = cv2.VideoCapture(self.config.camera_id)
        if not cap.isOpened():
            logger.error(f"Failed to open OpenCV camera {self.config.camera_id}")
            return False

        cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.config.resolution_width)
        cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.config.resolution_height)
        cap.set(cv2.CAP_PROP_FPS, self.config.framerate)

        self._capture = cap
        self._running = True
        self._capture_thread = threading.Thread(target=self._capture_loop, daemon=True)
        self._capture_thread.start()

        logger.info(f"Camera {self.config.camera_id} started")
        return True

    def _capture_loop(self) -> None:
        """Background thread that continuously captures frames."""
        while self._running and self._capture is not None:
            ret, frame = self._capture.read()
            if not ret:
                time.sleep(0.01)
                continue

            with self._frame_lock:
                self._frame = frame

    def stop(self) -> None:
        """Stop capturing and release the camera."""
        self._running = False

        if self._capture_thread is not None and self._capture_thread.is_alive():
            self._capture_thread.join(timeout=2.0)
        self._capture_thread = None

        if self._capture is not None:
            self._capture.release()
            self._capture = None
            logger.info(f"Camera {self.config.camera_id} stopped")

        with self._frame_lock:
            self._frame = None

    def grab_frame(self) -> Optional[np.ndarray]:
        with self._frame_lock:
            if self._frame is None:
                return None
            return self._frame.copy()

    @property
    def is_running(self) -> bool:
        return self._running


class StaticFrameSink(IImageSink):
    """Image sink returning copies of a fixed frame. Used in simulation mode."""

    def __init__(self, frame: Optional[np.ndarray]):
        self.frame = frame

    def grab_frame(self) -> Optional[np.ndarray]:
        return self.frame.copy() if self.frame is not None else None


class MjpegStreamSource(IImageSource):
    """
    Image source that serves the latest frame as an MJPEG stream.

    Routes:
        GET /stream.mjpg    multipart MJPEG stream
        GET /snapshot.jpg   latest frame as a single JPEG
    """

    def __init__(self, config: StreamConfig):
        self.config = config
        self._jpeg: Optional[bytes] = None
        self._frame_count = 0
        self._lock = threading.Lock()
        self._runner: Optional[web.AppRunner] = None
        self._stopping = asyncio.Event()

        self.app = web.Application()
        self.app.router.add_get("/stream.mjpg", self._handle_stream)
        self.app.router.add_get("/snapshot.jpg", self._handle_snapshot)
        self.app.on_shutdown.append(self._on_shutdown)

    def put_frame(self, frame: np.ndarray) -> None:
        ok, encoded = cv2.imencode(
            ".jpg", frame, [int(cv2.IMWRITE_JPEG_QUALITY), self.config.jpeg_quality]
        )
        if not ok:
            logger.warning("Failed to JPEG encode output frame")
            return

        with self._lock:
            self._jpeg = encoded.tobytes()
            self._frame_count += 1

    def get_jpeg(self) -> Optional[bytes]:
        """Get the latest encoded frame."""
        with self._lock:
            return self._jpeg

    @property
    def frame_count(self) -> int:
        return self._frame_count

    async def start(self) -> None:
        """Start serving on the configured host and port."""
        self._stopping.clear()
        self._runner = web.AppRunner(self.app)
        await self._runner.setup()
        site = web.TCPSite(self._runner, self.config.host, self.config.port)
        await site.start()
        logger.info(f"MJPEG stream at http://{self.config.host}:{self.config.port}/stream.mjpg")

    async def stop(self) -> None:
        # Open stream responses end before the runner waits on its handlers
        self._stopping.set()
        if self._runner is not None:
            await self._runner.cleanup()
            self._runner = None
            logger.info("MJPEG stream stopped")

    async def _on_shutdown(self, app: web.Application) -> None:
        self._stopping.set()

    async def _handle_snapshot(self, request: web.Request) -> web.Response:
        jpeg = self.get_jpeg()
        if jpeg is None:
            raise web.HTTPNotFound(text="No frame available")
        return web.Response(body=jpeg, content_type="image/jpeg")

    async def _handle_stream(self, request: web.Request) -> web.StreamResponse:
        response = web.StreamResponse(
            headers={
                "Content-Type": f"multipart/x-mixed-replace; boundary={MJPEG_BOUNDARY}",
                "Cache-Control": "no-cache",
            }
        )
        await response.prepare(request)

        interval = 1.0 / self.config.max_fps
        last_count = -1
        while not self._stopping.is_set():
            with self._lock:
                jpeg, count = self._jpeg, self._frame_count
            if jpeg is not None and count != last_count:
                last_count = count
                await response.write(
                    f"--{MJPEG_BOUNDARY}\r\n"
                    f"Content-Type: image/jpeg\r\n"
                    f"Content-Length: {len(jpeg)}\r\n\r\n".encode() + jpeg + b"\r\n"
                )
            await asyncio.sleep(interval)

        await response.write_eof()
        return response
