from listingreel.schemas.job import (
    AgentInfo,
    CheckoutRequest,
    CheckoutResponse,
    Customization,
    ImageMetadata,
    JobProgress,
    MusicTrackResponse,
    PropertyData,
    ScriptResponse,
    UploadResponse,
    VideoCreate,
    VideoResponse,
    VoicePreviewRequest,
)

__all__ = [
    "AgentInfo",
    "CheckoutRequest",
    "CheckoutResponse",
    "Customization",
    "ImageMetadata",
    "JobProgress",
    "MusicTrackResponse",
    "PropertyData",
    "ScriptResponse",
    "UploadResponse",
    "VideoCreate",
    "VideoResponse",
    "VoicePreviewRequest",
]
