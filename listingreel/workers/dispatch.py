"""
Generation dispatch - one image-to-video request per photo.

Failures are isolated per clip: a failed submit becomes a failed descriptor and
its siblings carry on. Only when every submit fails does the dispatch itself
fail.
"""

import asyncio
import logging
from typing import List, Optional, Protocol, Sequence

from pydantic import ValidationError as PayloadError

from listingreel.core.aggregate import ClipStatus, GenerationDescriptor
from listingreel.core.camera import CameraAngle
from listingreel.core.errors import AllClipsFailedError, VendorError, classify_vendor_failure
from listingreel.schemas.job import ImageMetadata
from listingreel.vendors.models import ClipJobStatus

logger = logging.getLogger(__name__)

AI_CLIP_DURATION = 5.0


class ClipVendor(Protocol):
    name: str

    def require_key(self): ...

    async def submit(self, image_url: str, angle: CameraAngle, address: str,
                     duration: float = AI_CLIP_DURATION) -> str: ...

    async def status(self, job_id: str) -> ClipJobStatus: ...


async def dispatch_generations(
    vendor: ClipVendor,
    images: Sequence[ImageMetadata],
    address: str,
    concurrency: Optional[int] = None,
    job_id: str = "-",
) -> List[GenerationDescriptor]:
    """
    Submit every image. `concurrency=None` fires them all at once; otherwise at
    most `concurrency` submits are in flight.
    """
    # Missing credentials fail the whole job before any request goes out.
    vendor.require_key()

    semaphore = asyncio.Semaphore(concurrency) if concurrency else None

    async def submit_one(index: int, image: ImageMetadata) -> GenerationDescriptor:
        descriptor = GenerationDescriptor(
            index=index, image_url=image.url, generation_id=None, duration=AI_CLIP_DURATION
        )
        try:
            if semaphore:
                async with semaphore:
                    descriptor.generation_id = await vendor.submit(
                        image.url, image.camera_angle, address, AI_CLIP_DURATION
                    )
            else:
                descriptor.generation_id = await vendor.submit(
                    image.url, image.camera_angle, address, AI_CLIP_DURATION
                )
        except (VendorError, PayloadError) as e:
            logger.error(f"[{job_id}] {vendor.name} clip {index + 1}/{len(images)} failed: {e}")
            descriptor.status = ClipStatus.FAILED
            descriptor.error = str(e)
            return descriptor

        logger.info(
            f"[{job_id}] {vendor.name} clip {index + 1}/{len(images)} queued: "
            f"{descriptor.generation_id}"
        )
        return descriptor

    descriptors = list(
        await asyncio.gather(*(submit_one(i, image) for i, image in enumerate(images)))
    )

    failed = [d for d in descriptors if d.status == ClipStatus.FAILED]
    logger.info(
        f"[{job_id}] Dispatch complete: {len(descriptors) - len(failed)} queued, "
        f"{len(failed)} failed"
    )
    if descriptors and len(failed) == len(descriptors):
        raise AllClipsFailedError(classify_vendor_failure(vendor.name, failed[0].error or ""))
    return descriptors
