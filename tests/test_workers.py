import asyncio
import json

import httpx
import pytest

from listingreel.core.aggregate import BatchState, ClipStatus, GenerationDescriptor
from listingreel.core.camera import CameraAngle
from listingreel.core.errors import (
    AllClipsFailedError,
    PipelineCancelled,
    PollTimeoutError,
    RenderFailedError,
    VendorConfigError,
    VendorRequestError,
    VendorTransientError,
)
from listingreel.schemas import ImageMetadata
from listingreel.vendors.luma import LumaClient
from listingreel.vendors.models import ClipJobStatus
from listingreel.vendors.shotstack import ShotstackClient
from listingreel.workers.dispatch import dispatch_generations
from listingreel.workers.poller import poll_clips, poll_render

from conftest import SleepRecorder


class FakeVendor:
    """Scripted clip vendor: `submits` and `statuses` map ids to outcomes."""

    name = "Luma"

    def __init__(self, api_key="key", submit_errors=None, statuses=None):
        self.api_key = api_key
        self.submit_errors = submit_errors or {}
        self.statuses = statuses or {}
        self.submitted = []
        self.in_flight = 0
        self.max_in_flight = 0

    def require_key(self):
        if not self.api_key:
            raise VendorConfigError(self.name)

    async def submit(self, image_url, angle, address, duration=5.0):
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        await asyncio.sleep(0)
        self.in_flight -= 1
        if image_url in self.submit_errors:
            raise self.submit_errors[image_url]
        self.submitted.append(image_url)
        return f"gen-{image_url.rsplit('/', 1)[-1]}"

    async def status(self, job_id):
        outcomes = self.statuses[job_id]
        outcome = outcomes.pop(0) if len(outcomes) > 1 else outcomes[0]
        if isinstance(outcome, Exception):
            raise outcome
        status, url = outcome
        return ClipJobStatus(job_id=job_id, status=status, url=url)


def _images(count):
    return [ImageMetadata(url=f"https://cdn.example.com/{i}", camera_angle=CameraAngle.AUTO)
            for i in range(count)]


def _descriptor(index, generation_id):
    return GenerationDescriptor(index=index, image_url=f"https://cdn.example.com/{index}",
                                generation_id=generation_id)


DONE = (ClipStatus.COMPLETED, "https://cdn.example.com/clip.mp4")
RUNNING = (ClipStatus.PROCESSING, None)


def test_dispatch_isolates_failures():
    vendor = FakeVendor(submit_errors={
        "https://cdn.example.com/1": VendorRequestError("Luma", "Luma API error: 400", 400),
    })

    descriptors = asyncio.run(dispatch_generations(vendor, _images(3), "1 Main St"))

    assert [d.status for d in descriptors] == [
        ClipStatus.PENDING, ClipStatus.FAILED, ClipStatus.PENDING
    ]
    assert descriptors[0].generation_id == "gen-0"
    assert descriptors[1].generation_id is None
    assert descriptors[1].error == "Luma API error: 400"
    assert all(d.duration == 5.0 for d in descriptors)


def test_dispatch_all_failed_is_classified():
    error = VendorRequestError("Luma", "Luma API error: 401", 401)
    vendor = FakeVendor(submit_errors={f"https://cdn.example.com/{i}": error for i in range(3)})

    with pytest.raises(AllClipsFailedError) as exc:
        asyncio.run(dispatch_generations(vendor, _images(3), "1 Main St"))
    assert str(exc.value) == "Invalid Luma API key. Please check your configuration."


def test_dispatch_without_key_sends_nothing():
    vendor = FakeVendor(api_key=None)
    with pytest.raises(VendorConfigError):
        asyncio.run(dispatch_generations(vendor, _images(3), "1 Main St"))
    assert vendor.submitted == []


def test_dispatch_concurrency_limit():
    vendor = FakeVendor()
    asyncio.run(dispatch_generations(vendor, _images(6), "1 Main St", concurrency=2))
    assert vendor.max_in_flight <= 2
    assert len(vendor.submitted) == 6


def test_poll_clips_until_done_with_progress():
    vendor = FakeVendor(statuses={
        "gen-0": [RUNNING, DONE],
        "gen-1": [RUNNING, RUNNING, DONE],
    })
    descriptors = [_descriptor(0, "gen-0"), _descriptor(1, "gen-1")]
    seen = []
    sleep = SleepRecorder()

    summary = asyncio.run(poll_clips(vendor, descriptors, on_progress=seen.append,
                                     interval=5, sleep=sleep))

    assert summary.state == BatchState.DONE
    assert [s.progress for s in seen] == [0, 40, 80]
    assert sleep.delays == [5, 5]


def test_poll_clips_swallows_transient_errors():
    vendor = FakeVendor(statuses={
        "gen-0": [VendorTransientError("Luma", "Luma API error: 503", 503), DONE],
    })
    summary = asyncio.run(poll_clips(vendor, [_descriptor(0, "gen-0")], sleep=SleepRecorder()))
    assert summary.state == BatchState.DONE


def test_poll_clips_marks_rejected_status_as_failed():
    vendor = FakeVendor(statuses={
        "gen-0": [VendorRequestError("Luma", "Luma API error: 404", 404)],
        "gen-1": [DONE],
    })
    descriptors = [_descriptor(0, "gen-0"), _descriptor(1, "gen-1")]

    summary = asyncio.run(poll_clips(vendor, descriptors, sleep=SleepRecorder()))

    assert summary.state == BatchState.DONE
    assert descriptors[0].status == ClipStatus.FAILED


def test_poll_clips_all_failed_returns_failed_summary():
    vendor = FakeVendor(statuses={"gen-0": [(ClipStatus.FAILED, None)]})
    summary = asyncio.run(poll_clips(vendor, [_descriptor(0, "gen-0")], sleep=SleepRecorder()))
    assert summary.state == BatchState.FAILED


def test_completed_without_url_keeps_polling():
    vendor = FakeVendor(statuses={"gen-0": [(ClipStatus.COMPLETED, None), DONE]})
    descriptors = [_descriptor(0, "gen-0")]
    sleep = SleepRecorder()

    summary = asyncio.run(poll_clips(vendor, descriptors, sleep=sleep))

    assert summary.state == BatchState.DONE
    assert len(sleep.delays) == 1
    assert descriptors[0].video_url == "https://cdn.example.com/clip.mp4"


def test_poll_clips_times_out():
    vendor = FakeVendor(statuses={"gen-0": [RUNNING]})
    sleep = SleepRecorder()
    with pytest.raises(PollTimeoutError):
        asyncio.run(poll_clips(vendor, [_descriptor(0, "gen-0")], max_attempts=4, sleep=sleep))
    assert len(sleep.delays) == 3


def test_poll_clips_stops_when_cancelled():
    vendor = FakeVendor(statuses={"gen-0": [RUNNING]})
    cancel = asyncio.Event()
    sleep = SleepRecorder(on_sleep=cancel.set)

    with pytest.raises(PipelineCancelled):
        asyncio.run(poll_clips(vendor, [_descriptor(0, "gen-0")], cancel=cancel, sleep=sleep))
    assert len(sleep.delays) == 1


class FakeRenderer:
    name = "Shotstack"

    def __init__(self, outcomes):
        self.outcomes = outcomes

    async def status(self, render_id):
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        status, url, error = outcome
        return ClipJobStatus(job_id=render_id, status=status, url=url, error=error)


def test_poll_render_returns_url():
    renderer = FakeRenderer([
        (ClipStatus.PROCESSING, None, None),
        VendorTransientError("Shotstack", "Shotstack API error: 502", 502),
        (ClipStatus.COMPLETED, None, None),
        (ClipStatus.COMPLETED, "https://cdn.example.com/final.mp4", None),
    ])
    url = asyncio.run(poll_render(renderer, "render-1", sleep=SleepRecorder()))
    assert url == "https://cdn.example.com/final.mp4"


def test_poll_render_failure():
    renderer = FakeRenderer([(ClipStatus.FAILED, None, "Asset not found")])
    with pytest.raises(RenderFailedError, match="Asset not found"):
        asyncio.run(poll_render(renderer, "render-1", sleep=SleepRecorder()))


def test_poll_render_times_out():
    renderer = FakeRenderer([(ClipStatus.PROCESSING, None, None)] * 3)
    with pytest.raises(PollTimeoutError):
        asyncio.run(poll_render(renderer, "render-1", max_attempts=3, sleep=SleepRecorder()))


def test_unreadable_submit_fails_only_that_clip():
    def handler(request):
        image_url = json.loads(request.content)["keyframes"]["frame0"]["url"]
        if image_url.endswith("/1"):
            return httpx.Response(200, text="not json")
        return httpx.Response(201, json={"id": f"gen-{image_url.rsplit('/', 1)[-1]}"})

    vendor = LumaClient(api_key="k", transport=httpx.MockTransport(handler), sleep=SleepRecorder())
    descriptors = asyncio.run(dispatch_generations(vendor, _images(3), "1 Main St"))

    assert [d.status for d in descriptors] == [
        ClipStatus.PENDING, ClipStatus.FAILED, ClipStatus.PENDING
    ]
    assert [d.generation_id for d in descriptors] == ["gen-0", None, "gen-2"]
    assert "unreadable response" in descriptors[1].error


def test_poll_clips_rides_out_an_unreadable_status():
    responses = iter([
        httpx.Response(200, text="<html>gateway hiccup</html>"),
        httpx.Response(200, json={
            "id": "gen-0",
            "state": "completed",
            "assets": {"video": "https://cdn.example.com/clip.mp4"},
        }),
    ])
    vendor = LumaClient(api_key="k", transport=httpx.MockTransport(lambda r: next(responses)),
                        sleep=SleepRecorder())
    descriptors = [_descriptor(0, "gen-0")]
    sleep = SleepRecorder()

    summary = asyncio.run(poll_clips(vendor, descriptors, sleep=sleep))

    assert summary.state == BatchState.DONE
    assert descriptors[0].video_url == "https://cdn.example.com/clip.mp4"
    assert len(sleep.delays) == 1


def test_poll_render_rides_out_an_unreadable_status():
    responses = iter([
        httpx.Response(200, text="<html>gateway hiccup</html>"),
        httpx.Response(200, json={
            "success": True,
            "response": {"id": "render-1", "status": "done",
                         "url": "https://cdn.example.com/final.mp4"},
        }),
    ])
    renderer = ShotstackClient(api_key="ss-key", base_url="https://api.shotstack.io/v1",
                               transport=httpx.MockTransport(lambda r: next(responses)))

    url = asyncio.run(poll_render(renderer, "render-1", sleep=SleepRecorder()))
    assert url == "https://cdn.example.com/final.mp4"
