"""
Video API endpoints.
"""

import logging
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Header, HTTPException, Request, Response, UploadFile
from sqlalchemy.orm import Session

from listingreel import config
from listingreel.core.billing import verify_webhook_signature
from listingreel.core.catalog import MUSIC_LIBRARY
from listingreel.core.errors import ValidationError, VendorConfigError
from listingreel.core.storage import ObjectStorage
from listingreel.core.storage import UploadFile as StoredFile
from listingreel.core.validation import (
    estimate_speech_seconds,
    validate_agent,
    validate_image_count,
    validate_image_url,
    validate_script,
    word_count,
)
from listingreel.db import Video, VideoStatus, create_video, get_db
from listingreel.schemas import (
    CheckoutRequest,
    CheckoutResponse,
    JobProgress,
    MusicTrackResponse,
    PropertyData,
    ScriptResponse,
    UploadResponse,
    VideoCreate,
    VideoResponse,
    VoicePreviewRequest,
)
from listingreel.vendors.checkout import StripeCheckout
from listingreel.vendors.copywriter import ScriptWriter
from listingreel.vendors.tts import ElevenLabsClient

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["api"])


# Dependencies, overridden in tests

def get_storage() -> ObjectStorage:
    return ObjectStorage()


def get_tts() -> ElevenLabsClient:
    return ElevenLabsClient()


def get_script_writer() -> ScriptWriter:
    return ScriptWriter()


def get_checkout() -> StripeCheckout:
    return StripeCheckout()


def get_webhook_secret() -> Optional[str]:
    return config.STRIPE_WEBHOOK_SECRET


def _get_video(db: Session, video_id: UUID) -> Video:
    video = db.query(Video).filter(Video.id == video_id).first()
    if not video:
        raise HTTPException(status_code=404, detail="Video not found")
    return video


@router.post("/uploads", response_model=UploadResponse)
async def upload_images(
    files: List[UploadFile] = File(...),
    storage: ObjectStorage = Depends(get_storage),
):
    """Upload listing photos. Returns their public URLs, in order."""
    stored = []
    for file in files:
        if file.content_type and not file.content_type.startswith("image/"):
            raise ValidationError(f"Not an image: {file.filename}")
        stored.append(StoredFile(
            data=await file.read(),
            filename=file.filename or "image.jpg",
            content_type=file.content_type,
        ))

    def on_progress(completed: int, total: int):
        logger.info(f"Uploaded {completed}/{total} images")

    urls = await storage.upload_many(stored, folder="uploads", on_progress=on_progress)
    return UploadResponse(urls=urls)


@router.post("/videos", response_model=VideoResponse)
def create_video_job(data: VideoCreate, db: Session = Depends(get_db)):
    """
    Queue a video.
    Everything is validated here; the worker picks the job up from the table.
    """
    validate_image_count(len(data.images))
    for image in data.images:
        validate_image_url(image.url)
    validate_agent(data.agent.name, data.agent.phone)
    if data.customization.script:
        validate_script(data.customization.script)

    video = create_video(
        db,
        request=data.model_dump(mode="json"),
        mode=data.generation_mode,
        user_id=data.user_id,
    )
    logger.info(f"[{video.id}] Queued {data.generation_mode.value} video, {len(data.images)} images")
    return video


@router.get("/videos/{video_id}/progress", response_model=JobProgress)
def get_progress(video_id: UUID, db: Session = Depends(get_db)):
    """Poll this for progress updates."""
    video = _get_video(db, video_id)
    return JobProgress(status=video.status, stage=video.stage, progress=video.progress)


@router.get("/videos/{video_id}", response_model=VideoResponse)
def get_video(video_id: UUID, db: Session = Depends(get_db)):
    """Get full video details."""
    return _get_video(db, video_id)


@router.get("/library", response_model=List[VideoResponse])
def get_library(user_id: Optional[str] = None, db: Session = Depends(get_db)):
    """Completed videos, newest first."""
    query = db.query(Video).filter(Video.status == VideoStatus.COMPLETED)
    if user_id:
        query = query.filter(Video.user_id == user_id)
    return query.order_by(Video.created_at.desc()).all()


@router.get("/music", response_model=List[MusicTrackResponse])
def list_music(category: Optional[str] = None):
    tracks = MUSIC_LIBRARY.values()
    if category:
        tracks = [t for t in tracks if t.category == category]
    return list(tracks)


@router.post("/voices/preview")
async def preview_voice(data: VoicePreviewRequest, tts: ElevenLabsClient = Depends(get_tts)):
    audio = await tts.preview(data.voice)
    return Response(content=audio, media_type="audio/mpeg")


@router.post("/scripts", response_model=ScriptResponse)
async def generate_script(data: PropertyData,
                          writer: ScriptWriter = Depends(get_script_writer)):
    script = await writer.write(data.model_dump())
    return ScriptResponse(
        script=script,
        word_count=word_count(script),
        estimated_seconds=round(estimate_speech_seconds(script), 1),
    )


@router.post("/billing/checkout", response_model=CheckoutResponse)
async def create_checkout(data: CheckoutRequest,
                          checkout: StripeCheckout = Depends(get_checkout)):
    session = await checkout.create_session(data.user_id, data.plan, data.email)
    return CheckoutResponse(session_id=session.id, url=session.url)


@router.post("/billing/webhook")
async def billing_webhook(
    request: Request,
    stripe_signature: Optional[str] = Header(None),
    secret: Optional[str] = Depends(get_webhook_secret),
):
    if not secret:
        raise VendorConfigError("Stripe", "Stripe webhook secret not configured")
    if not stripe_signature:
        raise HTTPException(status_code=400, detail="No signature found")

    event = verify_webhook_signature(await request.body(), stripe_signature, secret)
    logger.info(f"Webhook event received: {event.get('type')} ({event.get('id')})")
    return {"received": True}
