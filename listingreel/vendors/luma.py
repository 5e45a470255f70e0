"""
Luma Dream Machine image-to-video client.
"""

import logging
from types import MappingProxyType
from typing import Mapping

from listingreel import config
from listingreel.core.camera import CameraAngle, vendor_angle
from listingreel.vendors.base import VendorClient
from listingreel.vendors.models import ClipJobStatus, LumaGeneration

logger = logging.getLogger(__name__)

CAMERA_ANGLE_PROMPTS: Mapping[str, str] = MappingProxyType({
    "auto": (
        "Ultra-stable camera with locked horizon and tripod-level steadiness.\n"
        "Extremely slow, controlled motion only: subtle forward dolly OR micro parallax "
        "(choose one), no rotation.\n"
        "No shaking, no jitter, no wobble, no handheld motion.\n"
        "Smooth continuous motion start-to-finish with constant speed and no sudden changes."
    ),
    "wide-shot": (
        "Locked static wide establishing shot.\n"
        "Tripod-mounted, completely motionless.\n"
        "No panning, no tilting, no zooming, no movement at all.\n"
        "Horizon perfectly level, vertical lines perfectly straight."
    ),
    "zoom-in": (
        "Ultra-stable slow push-in (dolly-in) toward the center focal point.\n"
        "Camera moves forward ONLY on a straight slider path.\n"
        "No rotation, no pan, no tilt, no vertical movement.\n"
        "Constant speed push-in, smooth from start to end.\n"
        "No shaking, no jitter, no wobble."
    ),
    "pan-left": (
        "Ultra-stable pan left ONLY.\n"
        "Rotation-only motion around a fixed pivot point (tripod fluid head).\n"
        "No dolly, no zoom, no tilt, no vertical movement.\n"
        "Constant speed rotation, smooth from start to end.\n"
        "No shaking, no jitter, no wobble."
    ),
    "pan-right": (
        "Ultra-stable pan right ONLY.\n"
        "Rotation-only motion around a fixed pivot point (tripod fluid head).\n"
        "No dolly, no zoom, no tilt, no vertical movement.\n"
        "Constant speed rotation, smooth from start to end.\n"
        "No shaking, no jitter, no wobble."
    ),
})

BASE_PROMPT_SUFFIX = (
    "Maintain strict architectural accuracy and straight vertical lines.\n"
    "Consistent exposure, no flicker, no warping.\n"
    "Natural interior/exterior lighting (match the input image), soft realistic "
    "shadows and reflections.\n"
    "Luxury real estate cinematography, calm and elegant mood.\n"
    "No people, no vehicles, no text, no watermarks, no UI, no camera artifacts.\n"
    "Photorealistic, clean, stable, professional property marketing video.\n"
    "4K quality."
)


def build_prompt(
    address: str,
    angle: CameraAngle,
    prompts: Mapping[str, str] = CAMERA_ANGLE_PROMPTS,
) -> str:
    angle_prompt = prompts.get(vendor_angle(angle).value, prompts["auto"])
    return f"High-end cinematic real estate video of {address}.\n{angle_prompt}\n{BASE_PROMPT_SUFFIX}"


class LumaClient(VendorClient):
    name = "Luma"
    base_url = "https://api.lumalabs.ai/dream-machine/v1"

    def __init__(self, api_key=config.LUMA_API_KEY, **kwargs):
        super().__init__(api_key, **kwargs)

    async def submit(self, image_url: str, angle: CameraAngle, address: str,
                     duration: float = 5.0) -> str:
        """Start a generation and return its id. Luma picks the clip length itself."""
        response = await self._request(
            "POST",
            "/generations",
            json={
                "model": "ray-2",
                "prompt": build_prompt(address, angle),
                "keyframes": {"frame0": {"type": "image", "url": image_url}},
                "aspect_ratio": "9:16",
                "loop": False,
            },
        )
        generation = LumaGeneration.model_validate(self._json(response))
        logger.info(f"Luma generation started: {generation.id}")
        return generation.id

    async def status(self, generation_id: str) -> ClipJobStatus:
        response = await self._request("GET", f"/generations/{generation_id}", attempts=1)
        return LumaGeneration.model_validate(self._json(response)).normalized()
