import asyncio
import json
from urllib.parse import parse_qs

import httpx
import pytest

from listingreel.core.aggregate import ClipStatus
from listingreel.core.camera import CameraAngle
from listingreel.core.errors import (
    ValidationError,
    VendorConfigError,
    VendorError,
    VendorRequestError,
    VendorTransientError,
    user_message,
)
from listingreel.vendors.checkout import StripeCheckout
from listingreel.vendors.copywriter import ScriptWriter, build_script_prompt
from listingreel.vendors.luma import LumaClient, build_prompt
from listingreel.vendors.runway import RunwayClient, camera_control, clip_duration
from listingreel.vendors.shotstack import ShotstackClient, StitchClip, build_edit
from listingreel.vendors.tts import ElevenLabsClient

from conftest import SleepRecorder


def _transport(handler, calls=None):
    def record(request):
        if calls is not None:
            calls.append(request)
        return handler(request)
    return httpx.MockTransport(record)


def test_missing_key_fails_before_any_request():
    calls = []
    client = LumaClient(api_key=None, transport=_transport(lambda r: httpx.Response(200), calls))
    with pytest.raises(VendorConfigError, match="Luma API key not configured"):
        asyncio.run(client.submit("https://cdn.example.com/a.jpg", CameraAngle.AUTO, "1 Main St"))
    assert calls == []


def test_luma_submit_sends_generation_request():
    calls = []
    transport = _transport(lambda r: httpx.Response(201, json={"id": "gen-1", "state": "queued"}), calls)
    client = LumaClient(api_key="luma-key", transport=transport)

    generation_id = asyncio.run(
        client.submit("https://cdn.example.com/a.jpg", CameraAngle.PUSH_IN, "1 Main St")
    )

    assert generation_id == "gen-1"
    request = calls[0]
    assert request.method == "POST"
    assert request.url.path == "/dream-machine/v1/generations"
    assert request.headers["Authorization"] == "Bearer luma-key"
    body = json.loads(request.content)
    assert body["model"] == "ray-2"
    assert body["aspect_ratio"] == "9:16"
    assert body["keyframes"]["frame0"] == {"type": "image", "url": "https://cdn.example.com/a.jpg"}
    assert "1 Main St" in body["prompt"]
    assert "push-in (dolly-in)" in body["prompt"]


@pytest.mark.parametrize("state,expected", [
    ("queued", ClipStatus.PROCESSING),
    ("dreaming", ClipStatus.PROCESSING),
    ("completed", ClipStatus.COMPLETED),
    ("failed", ClipStatus.FAILED),
    ("brand-new-state", ClipStatus.PENDING),
])
def test_luma_status_mapping(state, expected):
    payload = {"id": "gen-1", "state": state, "assets": {"video": "https://cdn.example.com/v.mp4"}}
    client = LumaClient(api_key="k", transport=_transport(lambda r: httpx.Response(200, json=payload)))
    result = asyncio.run(client.status("gen-1"))
    assert result.status == expected
    assert (result.url is not None) == (expected == ClipStatus.COMPLETED)


def test_luma_prompt_falls_back_to_auto():
    assert "forward dolly" in build_prompt("1 Main St", CameraAngle.PUSH_OUT)


def test_runway_submit_uses_version_header_and_camera_control():
    calls = []
    transport = _transport(lambda r: httpx.Response(200, json={"id": "task-1"}), calls)
    client = RunwayClient(api_key="rw-key", transport=transport)

    asyncio.run(client.submit("https://cdn.example.com/a.jpg", CameraAngle.ORBIT_RIGHT, "1 Main St"))

    request = calls[0]
    assert request.url.path == "/v1/image_to_video"
    assert request.headers["X-Runway-Version"] == "2024-11-06"
    body = json.loads(request.content)
    assert body["model"] == "gen3a_turbo"
    assert body["promptImage"] == "https://cdn.example.com/a.jpg"
    assert body["duration"] == 5
    assert body["camera_control"] == {"pan": 3, "horizontal": 2}


def test_runway_camera_control_and_duration():
    assert camera_control(CameraAngle.WIDE_SHOT) == {}
    assert camera_control(CameraAngle.PUSH_IN) == {"zoom": 2}
    assert camera_control(CameraAngle.PAN_LEFT) == {"pan": -3, "horizontal": -2}
    assert clip_duration(3.5) == 5
    assert clip_duration(7) == 10


def test_runway_status_mapping():
    payload = {"id": "task-1", "status": "SUCCEEDED", "output": ["https://cdn.example.com/v.mp4"]}
    client = RunwayClient(api_key="k", transport=_transport(lambda r: httpx.Response(200, json=payload)))
    result = asyncio.run(client.status("task-1"))
    assert result.status == ClipStatus.COMPLETED
    assert result.url == "https://cdn.example.com/v.mp4"

    payload = {"id": "task-1", "status": "THROTTLED"}
    assert asyncio.run(client.status("task-1")).status == ClipStatus.PENDING


def test_shotstack_submit_and_status():
    def handler(request):
        if request.method == "POST":
            assert request.headers["x-api-key"] == "ss-key"
            return httpx.Response(201, json={"success": True, "response": {"id": "render-9"}})
        return httpx.Response(200, json={
            "success": True,
            "response": {"id": "render-9", "status": "done", "url": "https://cdn.example.com/final.mp4"},
        })

    client = ShotstackClient(api_key="ss-key", base_url="https://api.shotstack.io/v1",
                             transport=_transport(handler))
    assert asyncio.run(client.submit({"timeline": {}})) == "render-9"
    result = asyncio.run(client.status("render-9"))
    assert result.status == ClipStatus.COMPLETED
    assert result.url == "https://cdn.example.com/final.mp4"


def test_transient_errors_are_retried_with_backoff():
    responses = iter([httpx.Response(503), httpx.Response(429),
                      httpx.Response(201, json={"id": "gen-1"})])
    sleep = SleepRecorder()
    client = LumaClient(api_key="k", transport=_transport(lambda r: next(responses)),
                        sleep=sleep, retry_base_delay=15, max_attempts=3)

    assert asyncio.run(client.submit("https://cdn.example.com/a.jpg", CameraAngle.AUTO, "x")) == "gen-1"
    assert sleep.delays == [15, 30]


def test_retries_give_up_after_max_attempts():
    sleep = SleepRecorder()
    client = LumaClient(api_key="k", transport=_transport(lambda r: httpx.Response(500, text="boom")),
                        sleep=sleep, retry_base_delay=1, max_attempts=3)

    with pytest.raises(VendorTransientError) as exc:
        asyncio.run(client.submit("https://cdn.example.com/a.jpg", CameraAngle.AUTO, "x"))
    assert exc.value.status_code == 500
    assert sleep.delays == [1, 2]


def test_transport_errors_are_transient():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    client = LumaClient(api_key="k", transport=_transport(handler), sleep=SleepRecorder(),
                        max_attempts=2)
    with pytest.raises(VendorTransientError, match="unreachable"):
        asyncio.run(client.submit("https://cdn.example.com/a.jpg", CameraAngle.AUTO, "x"))


def test_client_errors_are_not_retried():
    calls = []
    sleep = SleepRecorder()
    client = LumaClient(api_key="k", sleep=sleep,
                        transport=_transport(lambda r: httpx.Response(401, text="bad key"), calls))

    with pytest.raises(VendorRequestError) as exc:
        asyncio.run(client.submit("https://cdn.example.com/a.jpg", CameraAngle.AUTO, "x"))
    assert str(exc.value) == "Luma API error: 401"
    assert exc.value.body == "bad key"
    assert len(calls) == 1
    assert sleep.delays == []


def test_status_checks_are_not_retried():
    calls = []
    client = LumaClient(api_key="k", sleep=SleepRecorder(),
                        transport=_transport(lambda r: httpx.Response(503), calls))
    with pytest.raises(VendorTransientError):
        asyncio.run(client.status("gen-1"))
    assert len(calls) == 1


def test_non_json_success_body_is_transient():
    client = LumaClient(api_key="k", sleep=SleepRecorder(),
                        transport=_transport(lambda r: httpx.Response(200, text="<html>oops</html>")))
    with pytest.raises(VendorTransientError) as exc:
        asyncio.run(client.status("gen-1"))
    assert exc.value.status_code == 200
    assert exc.value.body == "<html>oops</html>"
    assert user_message(exc.value) == "Service temporarily unavailable"


def test_edit_overlaps_clips_by_the_fade():
    clips = [StitchClip(url=f"https://cdn.example.com/clips/{i}.mp4", duration=3.5)
             for i in range(5)]
    edit = build_edit(clips, {"address": "1 Main St"}, agent={"name": "Jane Doe"},
                      audio_url="https://cdn.example.com/voice.mp3")

    tracks = edit["timeline"]["tracks"]
    video = tracks[0]["clips"]
    assert [c["start"] for c in video] == pytest.approx([0.0, 3.0, 6.0, 9.0, 12.0])
    assert video[-1]["start"] + video[-1]["length"] == pytest.approx(15.5)
    assert "transition" not in video[0]
    assert all(c["transition"] == {"in": "fade", "out": "fade"} for c in video[1:])
    assert tracks[3]["clips"][0]["start"] == pytest.approx(15.5)
    assert tracks[4]["clips"][0]["start"] == pytest.approx(15.5)
    assert tracks[5]["clips"][0]["length"] == pytest.approx(15.5)


def test_elevenlabs_speaks_with_resolved_voice():
    calls = []
    transport = _transport(lambda r: httpx.Response(200, content=b"ID3mp3"), calls)
    client = ElevenLabsClient(api_key="el-key", transport=transport)

    audio = asyncio.run(client.synthesize("Welcome home.", "British Female"))

    assert audio == b"ID3mp3"
    assert calls[0].url.path == "/v1/text-to-speech/21m00Tcm4TlvDq8ikWAM"
    assert calls[0].headers["xi-api-key"] == "el-key"
    assert json.loads(calls[0].content)["model_id"] == "eleven_monolingual_v1"


def test_elevenlabs_empty_audio_is_an_error():
    client = ElevenLabsClient(api_key="k", transport=_transport(lambda r: httpx.Response(200)))
    with pytest.raises(VendorError):
        asyncio.run(client.synthesize("Hello", "australian-male"))


def test_script_writer_returns_text():
    calls = []
    payload = {"content": [{"type": "text", "text": "  Welcome to 1 Main St.  "}]}
    client = ScriptWriter(api_key="ak", model="test-model",
                          transport=_transport(lambda r: httpx.Response(200, json=payload), calls))

    script = asyncio.run(client.write({"address": "1 Main St", "price": 950000}))

    assert script == "Welcome to 1 Main St."
    body = json.loads(calls[0].content)
    assert body["model"] == "test-model"
    assert body["max_tokens"] == 300
    assert calls[0].headers["anthropic-version"] == "2023-06-01"


def test_script_writer_empty_response():
    client = ScriptWriter(api_key="ak",
                          transport=_transport(lambda r: httpx.Response(200, json={"content": []})))
    with pytest.raises(VendorError, match="No script generated"):
        asyncio.run(client.write({"address": "1 Main St"}))


def test_script_prompt_includes_property_details():
    prompt = build_script_prompt({
        "address": "1 Main St",
        "price": 1200000,
        "beds": 4,
        "features": ["Pool", "Ocean views"],
    })
    assert "- Address: 1 Main St" in prompt
    assert "- Price: $1,200,000" in prompt
    assert "- Features: Pool, Ocean views" in prompt
    assert "contact for price" in build_script_prompt({"address": "x"})


def test_checkout_session_form():
    calls = []
    transport = _transport(
        lambda r: httpx.Response(200, json={"id": "cs_1", "url": "https://checkout.stripe.com/cs_1"}),
        calls,
    )
    checkout = StripeCheckout(api_key="sk_test", price_ids={"starter": "price_1"},
                              app_url="https://app.example.com", transport=transport)

    session = asyncio.run(checkout.create_session("user-1", "starter", "a@example.com"))

    assert session.id == "cs_1"
    form = {k: v[0] for k, v in parse_qs(calls[0].content.decode()).items()}
    assert form["mode"] == "subscription"
    assert form["line_items[0][price]"] == "price_1"
    assert form["metadata[user_id]"] == "user-1"
    assert form["customer_email"] == "a@example.com"
    assert form["success_url"] == "https://app.example.com/dashboard?session_id={CHECKOUT_SESSION_ID}"


def test_checkout_rejects_unknown_and_enterprise_plans():
    checkout = StripeCheckout(api_key="sk_test", price_ids={"starter": "price_1"})
    with pytest.raises(ValidationError, match="contacting sales"):
        checkout.price_for("enterprise")
    with pytest.raises(ValidationError, match="Invalid plan: gold"):
        checkout.price_for("gold")
