"""
Video pipeline - drives one job from queued to completed or failed.

    voiceover (optional) -> clips -> stitch -> poll render -> finalize

Clips come either from the local synthesizer (canvas mode: render, upload) or
from an image-to-video vendor (dispatch, poll). Progress:

    0-80    clips (completed / total * 80)
    90      stitching
    100     completed
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional

import httpx

from listingreel import config
from listingreel.core.aggregate import (
    BatchState,
    BatchSummary,
    completed_clips,
    generation_progress,
)
from listingreel.core.catalog import MUSIC_LIBRARY, MusicTrack, get_music_url
from listingreel.core.errors import (
    GENERIC_MESSAGE,
    AllClipsFailedError,
    ClipRenderError,
    PipelineCancelled,
    PipelineError,
    StaleJobError,
    classify_vendor_failure,
    user_message,
)
from listingreel.core.storage import ObjectStorage
from listingreel.core.synthesizer import ClipSynthesizer
from listingreel.db.jobs import JobRecorder, SessionFactory
from listingreel.db.models import GenerationMode, Video, VideoStage
from listingreel.schemas.job import VideoCreate
from listingreel.vendors.base import Sleep
from listingreel.vendors.copywriter import ScriptWriter
from listingreel.vendors.shotstack import ShotstackClient, StitchClip, build_edit
from listingreel.vendors.tts import ElevenLabsClient
from listingreel.workers.dispatch import ClipVendor, dispatch_generations
from listingreel.workers.poller import poll_clips, poll_render

logger = logging.getLogger(__name__)

STITCHING_PROGRESS = 90
CANCELLED_MESSAGE = "Video generation was interrupted, please try again"


@dataclass
class PipelineServices:
    """Everything a pipeline run talks to. Tests build one with mock transports."""
    storage: ObjectStorage
    shotstack: ShotstackClient
    tts: ElevenLabsClient
    script_writer: ScriptWriter
    clip_vendors: Dict[GenerationMode, ClipVendor] = field(default_factory=dict)
    music_library: Mapping[str, MusicTrack] = field(default_factory=lambda: MUSIC_LIBRARY)
    fps: int = 30
    ffmpeg_path: str = "ffmpeg"
    poll_interval: float = config.POLL_INTERVAL
    max_poll_attempts: int = config.MAX_POLL_ATTEMPTS
    concurrency: Optional[int] = config.GENERATION_CONCURRENCY or None
    http_transport: Optional[httpx.AsyncBaseTransport] = None
    sleep: Sleep = asyncio.sleep


def default_services() -> PipelineServices:
    from listingreel.vendors.luma import LumaClient
    from listingreel.vendors.runway import RunwayClient

    return PipelineServices(
        storage=ObjectStorage(),
        shotstack=ShotstackClient(),
        tts=ElevenLabsClient(),
        script_writer=ScriptWriter(),
        clip_vendors={
            GenerationMode.LUMA: LumaClient(),
            GenerationMode.RUNWAY: RunwayClient(),
        },
    )


class VideoPipeline:
    def __init__(self, session_factory: SessionFactory, services: PipelineServices,
                 cancel: Optional[asyncio.Event] = None):
        self.session_factory = session_factory
        self.services = services
        self.cancel = cancel or asyncio.Event()

    async def run(self, video: Video):
        """Run a claimed job to completion. Never raises for pipeline failures."""
        job_id = str(video.id)
        recorder = JobRecorder.for_video(self.session_factory, video)
        logger.info(f"[{job_id}] Starting {video.generation_mode.value} pipeline")

        try:
            request = VideoCreate.model_validate(video.request)
            await self._run(job_id, request, video.generation_mode, recorder)
        except StaleJobError as e:
            logger.warning(f"[{job_id}] Another writer owns this job, stopping: {e}")
        except PipelineCancelled:
            logger.warning(f"[{job_id}] Cancelled")
            self._fail(recorder, job_id, CANCELLED_MESSAGE)
        except PipelineError as e:
            logger.error(f"[{job_id}] Failed: {e}")
            self._fail(recorder, job_id, user_message(e))
        except Exception as e:
            logger.error(f"[{job_id}] Failed: {e}", exc_info=True)
            self._fail(recorder, job_id, GENERIC_MESSAGE)

    def _fail(self, recorder: JobRecorder, job_id: str, message: str):
        try:
            recorder.fail(message)
        except StaleJobError as e:
            logger.warning(f"[{job_id}] Could not record failure: {e}")

    async def _run(self, job_id: str, request: VideoCreate, mode: GenerationMode,
                   recorder: JobRecorder):
        services = self.services

        audio_url = await self.build_voiceover(job_id, request)
        music_url = get_music_url(request.customization.music, services.music_library)

        if mode == GenerationMode.CANVAS:
            clips = await self.render_canvas_clips(job_id, request, recorder)
        else:
            clips = await self.generate_ai_clips(job_id, request, mode, recorder)

        recorder.update(progress=STITCHING_PROGRESS, stage=VideoStage.STITCHING)
        edit = build_edit(
            clips,
            request.property_data.model_dump(),
            agent=request.agent.model_dump(),
            audio_url=audio_url,
            music_url=music_url,
            style=request.customization.style,
        )
        render_id = await services.shotstack.submit(edit)
        recorder.update(stitch_job_id=render_id)
        logger.info(f"[{job_id}] Stitching {len(clips)} clips, render {render_id}")

        video_url = await poll_render(
            services.shotstack,
            render_id,
            interval=services.poll_interval,
            max_attempts=services.max_poll_attempts,
            cancel=self.cancel,
            sleep=services.sleep,
            job_id=job_id,
        )
        recorder.complete(video_url)

    async def build_voiceover(self, job_id: str, request: VideoCreate) -> Optional[str]:
        """Script (given or generated) -> speech -> public URL. None without a voice."""
        voice = request.customization.voice
        if not voice:
            return None

        script = request.customization.script
        if not script:
            logger.info(f"[{job_id}] Generating voiceover script")
            script = await self.services.script_writer.write(request.property_data.model_dump())

        audio = await self.services.tts.synthesize(script, voice)
        url = await self.services.storage.put(f"voiceovers/{job_id}.mp3", audio, upsert=True)
        logger.info(f"[{job_id}] Voiceover ready: {url}")
        return url

    async def fetch_image(self, url: str) -> bytes:
        data = await self.services.storage.read(url)
        if data is not None:
            return data
        try:
            async with httpx.AsyncClient(transport=self.services.http_transport,
                                         timeout=60, follow_redirects=True) as client:
                response = await client.get(url)
                response.raise_for_status()
        except httpx.HTTPError as e:
            raise ClipRenderError(f"Failed to load image: {url} ({e})") from e
        return response.content

    async def render_canvas_clips(self, job_id: str, request: VideoCreate,
                                  recorder: JobRecorder) -> List[StitchClip]:
        """Render and upload one clip per photo, one at a time."""
        services = self.services
        synthesizer = ClipSynthesizer(
            fps=services.fps,
            orientation=request.customization.orientation,
            ffmpeg_path=services.ffmpeg_path,
        )
        total = len(request.images)
        clips = []
        for index, image in enumerate(request.images):
            if self.cancel.is_set():
                raise PipelineCancelled("Rendering cancelled")
            logger.info(f"[{job_id}] Rendering clip {index + 1}/{total} ({image.camera_angle.value})")

            data = await self.fetch_image(image.url)
            clip = await synthesizer.synthesize(data, image.camera_angle, image.duration, image.url)
            url = await services.storage.put(
                f"canvas-clips/{job_id}/clip-{index}.{clip.extension}", clip.data, upsert=True
            )
            clips.append(StitchClip(url=url, duration=image.duration))
            recorder.update(progress=generation_progress(index + 1, total))
        return clips

    async def generate_ai_clips(self, job_id: str, request: VideoCreate, mode: GenerationMode,
                                recorder: JobRecorder) -> List[StitchClip]:
        services = self.services
        vendor = services.clip_vendors.get(mode)
        if vendor is None:
            raise PipelineError(f"No clip vendor configured for {mode.value}")

        descriptors = await dispatch_generations(
            vendor,
            request.images,
            request.property_data.address,
            concurrency=services.concurrency,
            job_id=job_id,
        )

        def on_progress(summary: BatchSummary):
            recorder.update(progress=summary.progress)

        summary = await poll_clips(
            vendor,
            descriptors,
            on_progress=on_progress,
            interval=services.poll_interval,
            max_attempts=services.max_poll_attempts,
            cancel=self.cancel,
            sleep=services.sleep,
            job_id=job_id,
        )
        if summary.state == BatchState.FAILED:
            first_error = next((d.error for d in descriptors if d.error), "")
            raise AllClipsFailedError(classify_vendor_failure(vendor.name, first_error))
        return [StitchClip(url=d.video_url, duration=d.duration) for d in completed_clips(descriptors)]
