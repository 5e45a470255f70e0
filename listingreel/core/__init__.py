from listingreel.core.aggregate import (
    BatchState,
    BatchSummary,
    ClipStatus,
    GenerationDescriptor,
    aggregate,
    completed_clips,
    generation_progress,
)
from listingreel.core.camera import CameraAngle, Transform, get_transform
from listingreel.core.catalog import (
    MUSIC_LIBRARY,
    VOICE_IDS,
    get_music_url,
    get_tracks_by_category,
    get_voice_id,
)
from listingreel.core.errors import user_message
from listingreel.core.storage import ObjectStorage, UploadFile

__all__ = [
    "BatchState",
    "BatchSummary",
    "ClipStatus",
    "GenerationDescriptor",
    "aggregate",
    "completed_clips",
    "generation_progress",
    "CameraAngle",
    "Transform",
    "get_transform",
    "MUSIC_LIBRARY",
    "VOICE_IDS",
    "get_music_url",
    "get_tracks_by_category",
    "get_voice_id",
    "user_message",
    "ObjectStorage",
    "UploadFile",
]
