"""
Job Worker - runs queued video jobs through the pipeline.

One job at a time: reap stale jobs, claim the oldest queued job, run it, and
sleep when there is nothing to do. SIGTERM/SIGINT stop the loop; a job that is
mid-flight is failed with an "interrupted" message.

Run with: python -m listingreel.workers.job_worker

Environment Variables:
    DATABASE_URL: SQLAlchemy database URL
    SHARED_DATA_PATH: Base path for shared data (default: <project>/shared_data)
    WORKER_IDLE_INTERVAL: Seconds to wait when the queue is empty (default: 2)
    STALE_JOB_MINUTES: Fail claimed jobs not updated for this long (default: 30)
    POLL_INTERVAL / MAX_POLL_ATTEMPTS: Vendor polling cadence and limit
    LUMA_API_KEY, RUNWAY_API_KEY, SHOTSTACK_API_KEY, ELEVENLABS_API_KEY,
    ANTHROPIC_API_KEY: Vendor credentials
"""

import asyncio
import logging
import os
import shutil
import signal
import sys
from typing import Optional

from listingreel import config
from listingreel.core.errors import ClipRenderError
from listingreel.core.synthesizer import available_encoders, pick_encoder
from listingreel.db import SessionLocal, claim_next, init_db, reap_stale
from listingreel.db.jobs import SessionFactory
from listingreel.vendors.base import Sleep
from listingreel.workers.pipeline import PipelineServices, VideoPipeline, default_services

logging.basicConfig(
    level=config.LOG_LEVEL, format="%(asctime)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


async def _idle(cancel: asyncio.Event, seconds: float):
    """Sleep, but wake up as soon as we are asked to stop."""
    try:
        await asyncio.wait_for(cancel.wait(), timeout=seconds)
    except asyncio.TimeoutError:
        pass


async def run_once(session_factory: SessionFactory, services: PipelineServices,
                   cancel: asyncio.Event,
                   stale_minutes: int = config.STALE_JOB_MINUTES) -> bool:
    """One worker iteration. Returns True when a job was processed."""
    reap_stale(session_factory, stale_minutes)

    video = claim_next(session_factory)
    if video is None:
        return False

    logger.info(f"Processing job {video.id} ({video.generation_mode.value})")
    await VideoPipeline(session_factory, services, cancel).run(video)
    return True


async def run_worker(
    session_factory: SessionFactory,
    services: PipelineServices,
    cancel: asyncio.Event,
    idle_interval: float = config.WORKER_IDLE_INTERVAL,
    stale_minutes: int = config.STALE_JOB_MINUTES,
    max_jobs: Optional[int] = None,
    idle: Optional[Sleep] = None,
):
    """Main loop. `max_jobs` stops after that many jobs (used by tests)."""
    processed = 0
    while not cancel.is_set():
        try:
            if await run_once(session_factory, services, cancel, stale_minutes):
                processed += 1
                if max_jobs is not None and processed >= max_jobs:
                    return
            elif idle is not None:
                await idle(idle_interval)
            else:
                await _idle(cancel, idle_interval)
        except Exception as e:
            logger.error(f"Worker error: {e}", exc_info=True)
            await _idle(cancel, idle_interval)


def verify_setup(ffmpeg_path: str = "ffmpeg") -> bool:
    """Verify that all required components are in place."""
    errors = []

    if shutil.which(ffmpeg_path) is None:
        errors.append(f"ffmpeg not found on PATH ({ffmpeg_path})")
    else:
        try:
            encoder = pick_encoder(available_encoders(ffmpeg_path))
            logger.info(f"Clip encoder: {encoder.name} ({encoder.extension})")
        except ClipRenderError as e:
            errors.append(str(e))

    for name in ("SHOTSTACK_API_KEY", "LUMA_API_KEY", "RUNWAY_API_KEY",
                 "ELEVENLABS_API_KEY", "ANTHROPIC_API_KEY"):
        if not getattr(config, name):
            logger.warning(f"{name} not set; jobs that need it will fail")

    # Check shared data directories
    for path in (config.SHARED_DATA_PATH, config.STORAGE_ROOT):
        if not os.path.exists(path):
            os.makedirs(path, exist_ok=True)
            logger.info(f"Created directory: {path}")

    if errors:
        for error in errors:
            logger.error(error)
        return False

    return True


async def _serve():
    cancel = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, cancel.set)

    await run_worker(SessionLocal, default_services(), cancel)
    logger.info("Worker stopped")


def main():
    """Main loop - poll for queued jobs."""
    logger.info("=" * 60)
    logger.info("Job Worker Starting")
    logger.info("=" * 60)
    logger.info("Configuration:")
    logger.info(f"  SHARED_DATA_PATH: {config.SHARED_DATA_PATH}")
    logger.info(f"  PUBLIC_BASE_URL: {config.PUBLIC_BASE_URL}")
    logger.info(f"  POLL_INTERVAL: {config.POLL_INTERVAL}s x {config.MAX_POLL_ATTEMPTS}")
    logger.info(f"  STALE_JOB_MINUTES: {config.STALE_JOB_MINUTES}")
    logger.info(f"  GENERATION_CONCURRENCY: {config.GENERATION_CONCURRENCY or 'unlimited'}")
    logger.info("=" * 60)

    if not verify_setup():
        logger.error("Setup verification failed! Fix the errors above and restart.")
        sys.exit(1)

    init_db()
    logger.info("Setup verified. Worker ready, polling for jobs...")
    asyncio.run(_serve())


if __name__ == "__main__":
    main()
