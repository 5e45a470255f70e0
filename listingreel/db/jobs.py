"""
Video job record writes.

Every write is a compare-and-set on `Video.version`: the UPDATE only matches
the row when its version is still the one this writer last saw, and bumps it.
A writer that lost the race gets `StaleJobError` and must stop.
"""
import logging
from datetime import datetime, timedelta
from typing import Callable, List, Optional
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.orm import Session

from listingreel.core.errors import TIMEOUT_MESSAGE, StaleJobError
from listingreel.db.models import GenerationMode, Video, VideoStage, VideoStatus

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], Session]


def create_video(db: Session, request: dict, mode: GenerationMode,
                 user_id: Optional[str] = None) -> Video:
    video = Video(
        user_id=user_id,
        generation_mode=mode,
        request=request,
        status=VideoStatus.PROCESSING,
        stage=VideoStage.QUEUED,
        progress=0,
        version=1,
    )
    db.add(video)
    db.commit()
    db.refresh(video)
    return video


def compare_and_set(db: Session, job_id: UUID, expected_version: int, **fields) -> int:
    """Apply `fields` if the row is still at `expected_version`; return the new version."""
    result = db.execute(
        update(Video)
        .where(Video.id == job_id, Video.version == expected_version)
        .values(**fields, version=expected_version + 1, updated_at=datetime.utcnow())
    )
    if result.rowcount != 1:
        db.rollback()
        raise StaleJobError(f"Video {job_id} changed since version {expected_version}")
    db.commit()
    return expected_version + 1


class JobRecorder:
    """
    The single writer for one job while a pipeline runs it.

    Tracks the version and progress it last wrote so progress never goes
    backwards and nothing is written after the job is finalized.
    """

    def __init__(self, session_factory: SessionFactory, job_id: UUID, version: int,
                 progress: int = 0):
        self.session_factory = session_factory
        self.job_id = job_id
        self.version = version
        self.progress = progress
        self.finalized = False

    @classmethod
    def for_video(cls, session_factory: SessionFactory, video: Video) -> "JobRecorder":
        return cls(session_factory, video.id, video.version, video.progress or 0)

    def _write(self, **fields):
        db = self.session_factory()
        try:
            self.version = compare_and_set(db, self.job_id, self.version, **fields)
        finally:
            db.close()

    def update(self, progress: Optional[int] = None, stage: Optional[VideoStage] = None,
               **fields):
        """Record progress (clamped, never lower than before) and/or other fields."""
        if self.finalized:
            logger.warning(f"[{self.job_id}] Ignoring write after finalization")
            return
        if progress is not None:
            progress = min(max(progress, self.progress), 100)
            if progress == self.progress and stage is None and not fields:
                return
            fields["progress"] = progress
        if stage is not None:
            fields["stage"] = stage
        if not fields:
            return
        self._write(**fields)
        self.progress = fields.get("progress", self.progress)

    def complete(self, video_url: str):
        if self.finalized:
            logger.warning(f"[{self.job_id}] Already finalized, not completing again")
            return
        self._write(
            status=VideoStatus.COMPLETED,
            stage=VideoStage.FINISHED,
            progress=100,
            video_url=video_url,
            completed_at=datetime.utcnow(),
        )
        self.progress = 100
        self.finalized = True
        logger.info(f"[{self.job_id}] Completed: {video_url}")

    def fail(self, message: str):
        """Mark failed. Progress is left where it was."""
        if self.finalized:
            logger.warning(f"[{self.job_id}] Already finalized, not failing: {message}")
            return
        self._write(
            status=VideoStatus.FAILED,
            stage=VideoStage.FINISHED,
            error_message=message,
        )
        self.finalized = True
        logger.info(f"[{self.job_id}] Failed: {message}")


def first_stage(mode: GenerationMode) -> VideoStage:
    return VideoStage.RENDERING if mode == GenerationMode.CANVAS else VideoStage.GENERATING


def claim_next(session_factory: SessionFactory) -> Optional[Video]:
    """Take the oldest queued job, or None. Losing a claim race returns None."""
    db = session_factory()
    try:
        video = (
            db.query(Video)
            .filter(Video.status == VideoStatus.PROCESSING, Video.stage == VideoStage.QUEUED)
            .order_by(Video.created_at)
            .first()
        )
        if video is None:
            return None
        try:
            compare_and_set(db, video.id, video.version, stage=first_stage(video.generation_mode))
        except StaleJobError:
            logger.info(f"[{video.id}] Claimed by another worker")
            return None
        db.refresh(video)
        db.expunge(video)
        return video
    finally:
        db.close()


def reap_stale(session_factory: SessionFactory, stale_minutes: int,
               now: Optional[datetime] = None) -> List[UUID]:
    """
    Fail claimed jobs whose record has not been written for `stale_minutes`.

    Queued jobs are left alone; they are waiting for a worker, not abandoned.
    """
    cutoff = (now or datetime.utcnow()) - timedelta(minutes=stale_minutes)
    reaped = []
    db = session_factory()
    try:
        stale = (
            db.query(Video)
            .filter(
                Video.status == VideoStatus.PROCESSING,
                Video.stage != VideoStage.QUEUED,
                Video.updated_at < cutoff,
            )
            .all()
        )
        for video in stale:
            last_update = video.updated_at
            try:
                compare_and_set(
                    db, video.id, video.version,
                    status=VideoStatus.FAILED,
                    stage=VideoStage.FINISHED,
                    error_message=TIMEOUT_MESSAGE,
                )
            except StaleJobError:
                continue
            logger.warning(f"[{video.id}] Reaped stale job (last update {last_update})")
            reaped.append(video.id)
    finally:
        db.close()
    return reaped
