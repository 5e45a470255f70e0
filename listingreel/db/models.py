"""
Database models.
"""
import enum
import uuid
from datetime import datetime
from sqlalchemy import JSON, Column, String, DateTime, Integer, Text, Enum, Uuid

from listingreel.db.database import Base


class VideoStatus(str, enum.Enum):
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class VideoStage(str, enum.Enum):
    QUEUED = "queued"
    RENDERING = "rendering"  # local clip synthesis
    GENERATING = "generating"  # AI vendor clips
    STITCHING = "stitching"
    FINISHED = "finished"


class GenerationMode(str, enum.Enum):
    CANVAS = "canvas"
    LUMA = "luma"
    RUNWAY = "runway"


class Video(Base):
    """One row per end-to-end video generation attempt."""
    __tablename__ = "videos"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(String(100), nullable=True, index=True)

    # Status
    status = Column(Enum(VideoStatus), default=VideoStatus.PROCESSING, nullable=False)
    stage = Column(Enum(VideoStage), default=VideoStage.QUEUED, nullable=False)
    progress = Column(Integer, default=0, nullable=False)  # 0-100

    # Input
    generation_mode = Column(Enum(GenerationMode), default=GenerationMode.CANVAS, nullable=False)
    request = Column(JSON, nullable=False)  # validated VideoCreate payload

    # Output
    stitch_job_id = Column(String(100), nullable=True)
    video_url = Column(String(1000), nullable=True)
    error_message = Column(Text, nullable=True)

    # Bumped on every write; writers compare-and-set on it
    version = Column(Integer, default=1, nullable=False)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    completed_at = Column(DateTime, nullable=True)
