"""
Tests for frame capture and video output.
"""

import asyncio

import aiohttp
import numpy as np
from aiohttp import test_utils

from robot_vision.core.config import StreamConfig
from robot_vision.vision.image_io import MjpegStreamSource, StaticFrameSink

JPEG_MAGIC = b"\xff\xd8"


class TestStaticFrameSink:
    def test_returns_copies(self, red_frame):
        sink = StaticFrameSink(red_frame)
        frame = sink.grab_frame()

        assert np.array_equal(frame, red_frame)
        assert frame is not red_frame

    def test_no_frame(self):
        assert StaticFrameSink(None).grab_frame() is None


class TestMjpegStreamSource:
    def test_put_frame_encodes_jpeg(self, red_frame):
        source = MjpegStreamSource(StreamConfig())
        assert source.get_jpeg() is None

        source.put_frame(red_frame)
        source.put_frame(red_frame)

        assert source.get_jpeg().startswith(JPEG_MAGIC)
        assert source.frame_count == 2

    def test_snapshot_endpoint(self, red_frame):
        source = MjpegStreamSource(StreamConfig())

        async def fetch():
            async with test_utils.TestClient(test_utils.TestServer(source.app)) as client:
                missing = await client.get("/snapshot.jpg")
                source.put_frame(red_frame)
                found = await client.get("/snapshot.jpg")
                return missing.status, found.status, found.content_type, await found.read()

        missing_status, status, content_type, body = asyncio.run(fetch())

        assert missing_status == 404
        assert status == 200
        assert content_type == "image/jpeg"
        assert body == source.get_jpeg()

    def test_stream_endpoint(self, red_frame):
        source = MjpegStreamSource(StreamConfig())
        source.put_frame(red_frame)
        jpeg = source.get_jpeg()
        part_header = (
            f"--frame\r\nContent-Type: image/jpeg\r\nContent-Length: {len(jpeg)}\r\n\r\n"
        ).encode()

        async def fetch():
            async with test_utils.TestClient(test_utils.TestServer(source.app)) as client:
                response = await client.get("/stream.mjpg")
                part = await response.content.readexactly(len(part_header) + len(jpeg))
                response.close()
                return response.status, response.headers["Content-Type"], part

        status, content_type, part = asyncio.run(fetch())

        assert status == 200
        assert content_type == "multipart/x-mixed-replace; boundary=frame"
        assert part.startswith(part_header)
        assert part[len(part_header):] == jpeg
        assert part[len(part_header):].startswith(JPEG_MAGIC)

    def test_stop_with_open_stream(self, red_frame):
        config = StreamConfig(host="127.0.0.1", port=test_utils.unused_port())
        source = MjpegStreamSource(config)
        source.put_frame(red_frame)

        async def stream_then_stop():
            await source.start()
            async with aiohttp.ClientSession() as session:
                url = f"http://{config.host}:{config.port}/stream.mjpg"
                async with session.get(url) as response:
                    head = await response.content.readexactly(len(b"--frame"))
                    await asyncio.wait_for(source.stop(), timeout=5.0)
                    return head

        assert asyncio.run(stream_then_stop()) == b"--frame"
