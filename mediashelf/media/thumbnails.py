"""
Generates preview thumbnails for videos.
"""


import asyncio
import io
from typing import Optional, Tuple, Union

from loguru import logger
from PIL import Image

from ..async_utils import get_process_pool
from ..cli_utils import find_exe
from ..concurrency_limited_runner import ConcurrencyLimitedRunner
from ..config import config
from .models import MediaRecord

_THUMBNAIL_CONFIG = config["thumbnails"]

_g_runner = ConcurrencyLimitedRunner(
    max_processes=int(_THUMBNAIL_CONFIG["max_num_processes"].as_number())
)
"""
Runner that limits the number of concurrent FFMpeg processes.
"""


class FrameDecodeError(Exception):
    """
    Raised when we fail to extract a frame from a video.
    """


def _shrink_frame_sync(
    frame: bytes, max_size: Tuple[int, int], quality: int
) -> bytes:
    """
    Non-async part of thumbnail creation. This is meant to be run in a
    separate process so as not to block the event loop.

    Args:
        frame: The full-size frame, in any format Pillow can read.
        max_size: The maximum width and height of the thumbnail.
        quality: The JPEG quality to use.

    Returns:
        The thumbnail, as a JPEG.

    """
    pil_image = Image.open(io.BytesIO(frame))
    pil_image.thumbnail(max_size)
    # Make sure it's an RGB image.
    pil_image = pil_image.convert("RGB")

    thumbnail = io.BytesIO()
    pil_image.save(thumbnail, format="jpeg", quality=quality)
    return thumbnail.getvalue()


async def _grab_frame(
    source: Union[bytes, str], offset_seconds: float
) -> bytes:
    """
    Runs FFMpeg to grab a single frame.

    Args:
        source: Either the raw video, or a URL that FFMpeg can read it from.
        offset_seconds: The time of the frame.

    Returns:
        The frame, as a PNG image, or nothing if there was no frame at that
        offset.

    """
    input_data = None
    input_url = source
    if isinstance(source, bytes):
        input_data = source
        input_url = "pipe:"

    ffmpeg = find_exe("ffmpeg")
    return_code, stdout, stderr = await _g_runner.run(
        ffmpeg,
        "-hide_banner",
        "-ss",
        str(offset_seconds),
        "-i",
        input_url,
        "-frames:v",
        "1",
        "-f",
        "image2pipe",
        "-vcodec",
        "png",
        "-",
        input_data=input_data,
        timeout=_THUMBNAIL_CONFIG["timeout_seconds"].as_number(),
    )
    if return_code != 0:
        logger.debug("FFMpeg failed: {}", stderr.decode("utf8", "replace"))
        return b""
    return stdout


async def extract_frame(
    source: Union[bytes, str], offset_seconds: Optional[float] = None
) -> bytes:
    """
    Creates a thumbnail from a frame of a video.

    Args:
        source: Either the raw video, or a URL that FFMpeg can read it from.
        offset_seconds: The time of the frame to use. If the video is
            shorter than this, the first frame will be used instead. Uses
            the configured offset by default.

    Raises:
        `FrameDecodeError` if it couldn't produce a thumbnail.

    Returns:
        The thumbnail, as a JPEG.

    """
    if offset_seconds is None:
        offset_seconds = _THUMBNAIL_CONFIG["offset_seconds"].as_number()

    try:
        frame = await _grab_frame(source, offset_seconds)
        if not frame and offset_seconds > 0:
            logger.debug(
                "No frame at {} s, using the first frame.", offset_seconds
            )
            frame = await _grab_frame(source, 0)
    except (OSError, asyncio.TimeoutError) as error:
        raise FrameDecodeError(f"Could not run FFMpeg: {error}") from error

    if not frame:
        raise FrameDecodeError("FFMpeg did not produce a frame.")

    max_size = (
        int(_THUMBNAIL_CONFIG["max_width"].as_number()),
        int(_THUMBNAIL_CONFIG["max_height"].as_number()),
    )
    quality = int(_THUMBNAIL_CONFIG["jpeg_quality"].as_number())
    try:
        return await asyncio.get_running_loop().run_in_executor(
            get_process_pool(), _shrink_frame_sync, frame, max_size, quality
        )
    except OSError as error:
        raise FrameDecodeError(f"Could not read frame: {error}") from error


async def video_thumbnail(
    video: Union[MediaRecord, str, bytes]
) -> Optional[bytes]:
    """
    Best-effort thumbnail generation for display.

    Args:
        video: The record for the video, its URL, or the raw video.

    Returns:
        The thumbnail, as a JPEG, or None if it could not be created.

    """
    source = video.url if isinstance(video, MediaRecord) else video

    try:
        return await extract_frame(source)
    except FrameDecodeError as error:
        logger.warning("Failed to create thumbnail: {}", error)
        return None
