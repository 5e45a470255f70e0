"""
Typed vendor payloads.

Vendor JSON is parsed into these models as soon as it arrives, and the
vendor status strings are normalized to `ClipStatus` here. Nothing downstream
looks at a raw response dict.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from listingreel.core.aggregate import ClipStatus


class VendorModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class ClipJobStatus(VendorModel):
    """Normalized status of one vendor job (a clip or a render)."""
    job_id: str
    status: ClipStatus
    url: Optional[str] = None
    error: Optional[str] = None


# Luma Dream Machine

LUMA_STATES = {
    "queued": ClipStatus.PROCESSING,
    "pending": ClipStatus.PROCESSING,
    "dreaming": ClipStatus.PROCESSING,
    "processing": ClipStatus.PROCESSING,
    "completed": ClipStatus.COMPLETED,
    "failed": ClipStatus.FAILED,
}


class LumaAssets(VendorModel):
    video: Optional[str] = None


class LumaGeneration(VendorModel):
    id: str
    state: Optional[str] = None
    assets: Optional[LumaAssets] = None
    failure_reason: Optional[str] = None

    def normalized(self) -> ClipJobStatus:
        status = LUMA_STATES.get((self.state or "").lower(), ClipStatus.PENDING)
        return ClipJobStatus(
            job_id=self.id,
            status=status,
            url=self.assets.video if self.assets and status == ClipStatus.COMPLETED else None,
            error=self.failure_reason,
        )


# Runway

RUNWAY_STATES = {
    "PENDING": ClipStatus.PENDING,
    "THROTTLED": ClipStatus.PENDING,
    "RUNNING": ClipStatus.PROCESSING,
    "SUCCEEDED": ClipStatus.COMPLETED,
    "FAILED": ClipStatus.FAILED,
}


class RunwayTask(VendorModel):
    id: str
    status: Optional[str] = None
    output: List[str] = Field(default_factory=list)
    failure: Optional[str] = None

    def normalized(self) -> ClipJobStatus:
        status = RUNWAY_STATES.get((self.status or "").upper(), ClipStatus.PENDING)
        return ClipJobStatus(
            job_id=self.id,
            status=status,
            url=self.output[0] if self.output and status == ClipStatus.COMPLETED else None,
            error=self.failure,
        )


# Shotstack

SHOTSTACK_STATES = {
    "queued": ClipStatus.PROCESSING,
    "fetching": ClipStatus.PROCESSING,
    "rendering": ClipStatus.PROCESSING,
    "saving": ClipStatus.PROCESSING,
    "done": ClipStatus.COMPLETED,
    "failed": ClipStatus.FAILED,
}


class ShotstackQueued(VendorModel):
    id: str


class ShotstackSubmitResponse(VendorModel):
    success: bool = True
    message: Optional[str] = None
    response: ShotstackQueued


class ShotstackRender(VendorModel):
    id: str
    status: str
    url: Optional[str] = None
    error: Optional[str] = None


class ShotstackRenderResponse(VendorModel):
    success: bool = True
    response: ShotstackRender

    def normalized(self) -> ClipJobStatus:
        render = self.response
        status = SHOTSTACK_STATES.get(render.status.lower(), ClipStatus.PROCESSING)
        return ClipJobStatus(
            job_id=render.id,
            status=status,
            url=render.url if status == ClipStatus.COMPLETED else None,
            error=render.error,
        )


# Anthropic messages

class TextBlock(VendorModel):
    type: str = "text"
    text: str = ""


class MessageResponse(VendorModel):
    content: List[TextBlock] = Field(default_factory=list)

    @property
    def text(self) -> str:
        return "".join(block.text for block in self.content if block.type == "text").strip()


# Stripe

class CheckoutSession(VendorModel):
    id: str
    url: Optional[str] = None
