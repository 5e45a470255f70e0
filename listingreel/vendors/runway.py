"""
Runway image-to-video client.
"""

import logging

from listingreel import config
from listingreel.core.camera import CameraAngle, vendor_angle
from listingreel.vendors.base import VendorClient
from listingreel.vendors.models import ClipJobStatus, RunwayTask

logger = logging.getLogger(__name__)

RUNWAY_VERSION = "2024-11-06"

# Runway accepts 5 or 10 second clips.
CLIP_DURATIONS = (5, 10)


def camera_control(angle: CameraAngle) -> dict:
    """Runway camera_control values, each in -10..10."""
    move = vendor_angle(angle)
    if move == CameraAngle.PAN_RIGHT:
        return {"pan": 3, "horizontal": 2}
    if move == CameraAngle.PAN_LEFT:
        return {"pan": -3, "horizontal": -2}
    if move == CameraAngle.WIDE_SHOT:
        return {}
    return {"zoom": 2}


def build_prompt(address: str) -> str:
    return (
        f"High-end cinematic real estate video of {address}. "
        "Ultra-stable architecture, no morphing, no distortion. "
        "Luxury property marketing, photorealistic 4K quality. "
        "No people, no text, no watermarks."
    )


def clip_duration(requested: float) -> int:
    return CLIP_DURATIONS[0] if requested <= CLIP_DURATIONS[0] else CLIP_DURATIONS[1]


class RunwayClient(VendorClient):
    name = "Runway"
    base_url = "https://api.dev.runwayml.com/v1"

    def __init__(self, api_key=config.RUNWAY_API_KEY, **kwargs):
        super().__init__(api_key, **kwargs)

    def headers(self) -> dict:
        return {**super().headers(), "X-Runway-Version": RUNWAY_VERSION}

    async def submit(self, image_url: str, angle: CameraAngle, address: str,
                     duration: float = 5.0) -> str:
        body = {
            "model": "gen3a_turbo",
            "promptImage": image_url,
            "promptText": build_prompt(address),
            "ratio": "768:1280",
            "duration": clip_duration(duration),
        }
        control = camera_control(angle)
        if control:
            body["camera_control"] = control

        response = await self._request("POST", "/image_to_video", json=body)
        task = RunwayTask.model_validate(self._json(response))
        logger.info(f"Runway task started: {task.id}")
        return task.id

    async def status(self, task_id: str) -> ClipJobStatus:
        response = await self._request("GET", f"/tasks/{task_id}", attempts=1)
        return RunwayTask.model_validate(self._json(response)).normalized()
