"""
Pydantic schemas for the video API.
"""
from datetime import datetime
from typing import List, Literal, Optional, Union
from uuid import UUID
from pydantic import BaseModel, Field

from listingreel.core.camera import CameraAngle
from listingreel.core.timeline import DEFAULT_CLIP_DURATION
from listingreel.db.models import GenerationMode, VideoStage, VideoStatus


class ImageMetadata(BaseModel):
    """One source photo and how to move the camera over it."""
    url: str
    camera_angle: CameraAngle = CameraAngle.AUTO
    duration: float = Field(DEFAULT_CLIP_DURATION, ge=3, le=5)  # seconds


class PropertyData(BaseModel):
    address: str
    price: Optional[Union[int, float, str]] = None
    beds: Optional[int] = None
    baths: Optional[int] = None
    car_spaces: Optional[int] = None
    land_size: Optional[str] = None  # square metres
    features: List[str] = []
    description: Optional[str] = None


class AgentInfo(BaseModel):
    name: str
    phone: str
    email: Optional[str] = None
    photo: Optional[str] = None  # URL
    logo: Optional[str] = None  # URL
    color_scheme: Optional[str] = None


class Customization(BaseModel):
    style: str = "modern-luxe"
    music: Optional[str] = None  # track id or title
    voice: Optional[str] = None  # voice slug or display name; None = no voiceover
    script: Optional[str] = None  # None = generate one
    orientation: Literal["portrait", "landscape"] = "portrait"


class VideoCreate(BaseModel):
    """Everything needed to generate one video."""
    user_id: Optional[str] = None
    images: List[ImageMetadata]
    property_data: PropertyData
    agent: AgentInfo
    customization: Customization = Customization()
    generation_mode: GenerationMode = GenerationMode.CANVAS


class JobProgress(BaseModel):
    """Lightweight progress response for polling."""
    status: VideoStatus
    stage: VideoStage
    progress: int

    class Config:
        from_attributes = True


class VideoResponse(BaseModel):
    """Full job info."""
    id: UUID
    user_id: Optional[str]
    status: VideoStatus
    stage: VideoStage
    progress: int
    generation_mode: GenerationMode
    video_url: Optional[str]
    error_message: Optional[str]
    created_at: datetime
    completed_at: Optional[datetime]

    class Config:
        from_attributes = True


class UploadResponse(BaseModel):
    urls: List[str]


class MusicTrackResponse(BaseModel):
    track_id: str
    name: str
    duration: int
    category: str
    url: str

    class Config:
        from_attributes = True


class VoicePreviewRequest(BaseModel):
    voice: str


class ScriptResponse(BaseModel):
    script: str
    word_count: int
    estimated_seconds: float


class CheckoutRequest(BaseModel):
    user_id: str
    plan: str
    email: Optional[str] = None


class CheckoutResponse(BaseModel):
    session_id: str
    url: Optional[str]
