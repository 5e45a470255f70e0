"""
Per-clip generation state and the batch status derived from it.
"""

import enum
from dataclasses import dataclass
from typing import List, Optional, Sequence

GENERATION_PROGRESS_CEILING = 80  # the rest is reserved for stitching


class ClipStatus(str, enum.Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def terminal(self) -> bool:
        return self in (ClipStatus.COMPLETED, ClipStatus.FAILED)


class BatchState(str, enum.Enum):
    PROCESSING = "processing"
    DONE = "done"
    FAILED = "failed"


@dataclass
class GenerationDescriptor:
    """One clip's vendor job while it is being polled."""
    index: int
    image_url: str
    generation_id: Optional[str]
    status: ClipStatus = ClipStatus.PENDING
    video_url: Optional[str] = None
    error: Optional[str] = None
    duration: float = 5.0


@dataclass(frozen=True)
class BatchSummary:
    state: BatchState
    progress: int
    total: int
    completed: int
    failed: int
    pending: int
    processing: int

    @property
    def message(self) -> str:
        return f"{self.completed}/{self.total} clips ready"


def generation_progress(completed: int, total: int) -> int:
    if total <= 0:
        return 0
    return (completed * GENERATION_PROGRESS_CEILING) // total


def aggregate(descriptors: Sequence[GenerationDescriptor]) -> BatchSummary:
    """
    Batch state: processing until every clip is terminal, failed when every
    clip failed, otherwise done (a mix proceeds with the completed clips).
    """
    counts = {status: 0 for status in ClipStatus}
    for descriptor in descriptors:
        counts[descriptor.status] += 1

    total = len(descriptors)
    completed = counts[ClipStatus.COMPLETED]
    failed = counts[ClipStatus.FAILED]

    if total == 0 or failed == total:
        state = BatchState.FAILED
    elif completed + failed < total:
        state = BatchState.PROCESSING
    else:
        state = BatchState.DONE

    return BatchSummary(
        state=state,
        progress=generation_progress(completed, total),
        total=total,
        completed=completed,
        failed=failed,
        pending=counts[ClipStatus.PENDING],
        processing=counts[ClipStatus.PROCESSING],
    )


def completed_clips(descriptors: Sequence[GenerationDescriptor]) -> List[GenerationDescriptor]:
    """Completed clips with a usable URL, in their original order."""
    return sorted(
        (d for d in descriptors if d.status == ClipStatus.COMPLETED and d.video_url),
        key=lambda d: d.index,
    )
