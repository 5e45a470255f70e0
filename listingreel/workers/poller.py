"""
Bounded polling loops for vendor jobs.

Both loops tick at a fixed interval for at most `max_attempts` ticks, check the
cancellation event every tick, and swallow transient vendor errors (they are
counted and logged, and the next tick tries again).
"""

import asyncio
import logging
from typing import Callable, List, Optional, Sequence

from pydantic import ValidationError as PayloadError

from listingreel import config
from listingreel.core.aggregate import (
    BatchState,
    BatchSummary,
    ClipStatus,
    GenerationDescriptor,
    aggregate,
)
from listingreel.core.errors import (
    PipelineCancelled,
    PollTimeoutError,
    RenderFailedError,
    VendorRequestError,
    VendorTransientError,
)
from listingreel.vendors.base import Sleep

logger = logging.getLogger(__name__)


def _check_cancelled(cancel: Optional[asyncio.Event]):
    if cancel is not None and cancel.is_set():
        raise PipelineCancelled("Polling cancelled")


async def _refresh(vendor, descriptor: GenerationDescriptor) -> bool:
    """Update one descriptor in place. Returns False on a transient error."""
    try:
        result = await vendor.status(descriptor.generation_id)
    except (VendorTransientError, PayloadError) as e:
        logger.warning(f"Status check for {descriptor.generation_id} failed: {e}")
        return False
    except VendorRequestError as e:
        descriptor.status = ClipStatus.FAILED
        descriptor.error = str(e)
        return True

    if result.status == ClipStatus.COMPLETED and not result.url:
        # Done without a video is not done yet.
        descriptor.status = ClipStatus.PROCESSING
        return True
    descriptor.status = result.status
    descriptor.video_url = result.url
    descriptor.error = result.error
    return True


async def poll_clips(
    vendor,
    descriptors: Sequence[GenerationDescriptor],
    on_progress: Optional[Callable[[BatchSummary], None]] = None,
    interval: float = config.POLL_INTERVAL,
    max_attempts: int = config.MAX_POLL_ATTEMPTS,
    cancel: Optional[asyncio.Event] = None,
    sleep: Sleep = asyncio.sleep,
    job_id: str = "-",
) -> BatchSummary:
    """Poll every non-terminal clip until the batch is done or failed."""
    consecutive_errors = 0
    for attempt in range(1, max_attempts + 1):
        if attempt > 1:
            await sleep(interval)
        _check_cancelled(cancel)

        pending: List[GenerationDescriptor] = [
            d for d in descriptors if not d.status.terminal and d.generation_id
        ]
        results = await asyncio.gather(*(_refresh(vendor, d) for d in pending))
        if pending and not any(results):
            consecutive_errors += 1
            logger.warning(
                f"[{job_id}] Status check failed on every clip "
                f"({consecutive_errors} consecutive)"
            )
        else:
            consecutive_errors = 0

        summary = aggregate(descriptors)
        logger.info(
            f"[{job_id}] Poll {attempt}/{max_attempts}: {summary.message}, "
            f"{summary.failed} failed, {summary.processing + summary.pending} in progress"
        )
        if on_progress:
            on_progress(summary)
        if summary.state != BatchState.PROCESSING:
            return summary

    raise PollTimeoutError(f"Clip generation timed out after {max_attempts} attempts")


async def poll_render(
    vendor,
    render_id: str,
    interval: float = config.POLL_INTERVAL,
    max_attempts: int = config.MAX_POLL_ATTEMPTS,
    cancel: Optional[asyncio.Event] = None,
    sleep: Sleep = asyncio.sleep,
    job_id: str = "-",
) -> str:
    """Poll a render until it is done; returns the final video URL."""
    consecutive_errors = 0
    for attempt in range(1, max_attempts + 1):
        if attempt > 1:
            await sleep(interval)
        _check_cancelled(cancel)

        try:
            result = await vendor.status(render_id)
        except (VendorTransientError, PayloadError) as e:
            consecutive_errors += 1
            logger.warning(
                f"[{job_id}] Render status check failed ({consecutive_errors} consecutive): {e}"
            )
            continue
        consecutive_errors = 0

        logger.info(
            f"[{job_id}] Render {render_id} poll {attempt}/{max_attempts}: {result.status.value}"
        )
        if result.status == ClipStatus.FAILED:
            raise RenderFailedError(result.error or f"Render {render_id} failed")
        if result.status == ClipStatus.COMPLETED and result.url:
            return result.url

    raise PollTimeoutError(f"Render {render_id} timed out after {max_attempts} attempts")
