"""
Local clip synthesizer.

Renders one still photo into a short clip with a simulated camera move, with no
AI vendor involved. Frames are drawn with Pillow and piped to ffmpeg as raw
RGB, using the best encoder this ffmpeg build offers.
"""

import asyncio
import io
import logging
import os
import subprocess
import tempfile
from dataclasses import dataclass
from functools import lru_cache
from typing import FrozenSet, Optional, Tuple

from PIL import Image, ImageEnhance, ImageFilter, UnidentifiedImageError

from listingreel.core.camera import (
    MAX_ZOOM,
    CameraAngle,
    Transform,
    frame_progress,
    get_transform,
)
from listingreel.core.errors import ClipRenderError

logger = logging.getLogger(__name__)

CANVAS_SIZES = {
    "portrait": (720, 1280),
    "landscape": (1280, 720),
}


@dataclass(frozen=True)
class Encoder:
    name: str
    extension: str
    content_type: str


# Most preferred first.
ENCODER_PREFERENCES = (
    Encoder("libx264", "mp4", "video/mp4"),
    Encoder("libvpx-vp9", "webm", "video/webm"),
    Encoder("libvpx", "webm", "video/webm"),
    Encoder("mpeg4", "mp4", "video/mp4"),
)


@dataclass
class SynthesizedClip:
    data: bytes
    encoder: Encoder
    duration: float
    frame_count: int

    @property
    def content_type(self) -> str:
        return self.encoder.content_type

    @property
    def extension(self) -> str:
        return self.encoder.extension


@lru_cache(maxsize=None)
def available_encoders(ffmpeg_path: str = "ffmpeg") -> FrozenSet[str]:
    """Names of the video encoders compiled into this ffmpeg."""
    try:
        result = subprocess.run(
            [ffmpeg_path, "-hide_banner", "-encoders"],
            capture_output=True,
            text=True,
            timeout=30,
        )
    except (FileNotFoundError, subprocess.TimeoutExpired):
        return frozenset()

    names = set()
    for line in result.stdout.splitlines():
        parts = line.split()
        # " V....D libx264   libx264 H.264 ..."
        if len(parts) >= 2 and parts[0].startswith("V") and len(parts[0]) == 6:
            names.add(parts[1])
    return frozenset(names)


def pick_encoder(available: FrozenSet[str]) -> Encoder:
    for encoder in ENCODER_PREFERENCES:
        if encoder.name in available:
            return encoder
    raise ClipRenderError("No supported video codec available")


def contain_box(
    source_size: Tuple[int, int],
    canvas_size: Tuple[int, int],
    transform: Transform,
) -> Tuple[int, int, int, int]:
    """(x, y, width, height) of the image contain-fitted and then transformed."""
    sw, sh = source_size
    cw, ch = canvas_size
    base = min(cw / sw, ch / sh)
    width = sw * base * transform.scale
    height = sh * base * transform.scale
    center_x = cw / 2 + transform.offset_x * cw
    center_y = ch / 2 + transform.offset_y * ch
    return (
        round(center_x - width / 2),
        round(center_y - height / 2),
        max(1, round(width)),
        max(1, round(height)),
    )


def cover_size(source_size: Tuple[int, int], canvas_size: Tuple[int, int]) -> Tuple[int, int]:
    sw, sh = source_size
    cw, ch = canvas_size
    scale = max(cw / sw, ch / sh)
    return max(1, round(sw * scale)), max(1, round(sh * scale))


def load_image(data: bytes, source: str = "image") -> Image.Image:
    try:
        image = Image.open(io.BytesIO(data))
        image.load()
    except (UnidentifiedImageError, OSError) as e:
        raise ClipRenderError(f"Failed to load image: {source}") from e
    return image.convert("RGB")


class ClipSynthesizer:
    """
    Renders still images into camera-motion clips.

    One instance can render any number of clips; it holds no per-clip state.
    """

    def __init__(
        self,
        fps: int = 30,
        orientation: str = "portrait",
        ffmpeg_path: str = "ffmpeg",
        tail_seconds: float = 0.2,
        bitrate: str = "6M",
    ):
        if orientation not in CANVAS_SIZES:
            raise ValueError(f"Unknown orientation: {orientation}")
        self.fps = fps
        self.orientation = orientation
        self.canvas_size = CANVAS_SIZES[orientation]
        self.ffmpeg_path = ffmpeg_path
        self.tail_seconds = tail_seconds
        self.bitrate = bitrate

    def _prepare(self, image: Image.Image) -> Tuple[Image.Image, Optional[Image.Image]]:
        """Downscale the source once and build the background layer if needed."""
        cw, ch = self.canvas_size
        limit = (round(cw * (1 + MAX_ZOOM)), round(ch * (1 + MAX_ZOOM)))
        source = image.copy()
        source.thumbnail(limit, Image.Resampling.LANCZOS)

        background = None
        if image.width > image.height:
            # Fill the letterbox of wide photos with a soft, dark copy.
            background = image.resize(
                cover_size(image.size, self.canvas_size), Image.Resampling.BILINEAR
            )
            left = (background.width - cw) // 2
            top = (background.height - ch) // 2
            background = background.crop((left, top, left + cw, top + ch))
            background = background.filter(ImageFilter.GaussianBlur(24))
            background = ImageEnhance.Brightness(background).enhance(0.5)
        return source, background

    def compose_frame(
        self,
        source: Image.Image,
        background: Optional[Image.Image],
        transform: Transform,
    ) -> Image.Image:
        if background is not None:
            frame = background.copy()
        else:
            frame = Image.new("RGB", self.canvas_size, (0, 0, 0))
        x, y, width, height = contain_box(source.size, self.canvas_size, transform)
        layer = source.resize((width, height), Image.Resampling.BILINEAR)
        frame.paste(layer, (x, y))
        return frame

    def _ffmpeg_command(self, encoder: Encoder, output_path: str):
        cw, ch = self.canvas_size
        cmd = [
            self.ffmpeg_path,
            "-y",
            "-hide_banner",
            "-loglevel",
            "error",
            "-f",
            "rawvideo",
            "-pix_fmt",
            "rgb24",
            "-s",
            f"{cw}x{ch}",
            "-r",
            str(self.fps),
            "-i",
            "-",
            "-c:v",
            encoder.name,
            "-pix_fmt",
            "yuv420p",
            "-b:v",
            self.bitrate,
        ]
        if encoder.extension == "mp4":
            cmd.extend(["-movflags", "+faststart"])
        cmd.append(output_path)
        return cmd

    def render(self, image: Image.Image, angle: CameraAngle, duration: float) -> SynthesizedClip:
        """Render synchronously. CPU bound; call through `synthesize` from async code."""
        encoder = pick_encoder(available_encoders(self.ffmpeg_path))
        source, background = self._prepare(image)

        motion_frames = max(1, round(duration * self.fps))
        tail_frames = max(1, round(self.tail_seconds * self.fps))

        fd, output_path = tempfile.mkstemp(suffix=f".{encoder.extension}")
        os.close(fd)
        try:
            cmd = self._ffmpeg_command(encoder, output_path)
            proc = subprocess.Popen(
                cmd, stdin=subprocess.PIPE, stdout=subprocess.DEVNULL, stderr=subprocess.PIPE
            )
            try:
                last_frame = None
                try:
                    for index in range(motion_frames + 1):
                        progress = frame_progress(index, self.fps, duration)
                        last_frame = self.compose_frame(
                            source, background, get_transform(angle, progress)
                        ).tobytes()
                        proc.stdin.write(last_frame)
                    # Hold the final frame so the encoder flushes it.
                    for _ in range(tail_frames):
                        proc.stdin.write(last_frame)
                    proc.stdin.close()
                except BrokenPipeError:
                    pass
                stderr = proc.stderr.read().decode("utf8", errors="replace")
                returncode = proc.wait()
            except BaseException:
                # Never leave ffmpeg running behind a failed render.
                proc.kill()
                proc.wait()
                raise
            if returncode != 0:
                logger.error(f"ffmpeg stderr: {stderr}")
                raise ClipRenderError(f"ffmpeg failed with code {returncode}: {stderr[:300]}")

            with open(output_path, "rb") as f:
                data = f.read()
        finally:
            if os.path.exists(output_path):
                os.remove(output_path)

        return SynthesizedClip(
            data=data,
            encoder=encoder,
            duration=duration,
            frame_count=motion_frames + 1 + tail_frames,
        )

    async def synthesize(
        self, image_data: bytes, angle: CameraAngle, duration: float, source: str = "image"
    ) -> SynthesizedClip:
        image = load_image(image_data, source)
        return await asyncio.to_thread(self.render, image, angle, duration)
