"""
Shotstack render client and edit builder.

`build_edit` turns the ordered clips plus the property, agent and audio
selections into a Shotstack timeline:

    track 0  clips, in order, fading into each other
    track 1  dark gradient over the first clip
    track 2  property overlay (title, address, features, stats) on the first clip
    track 3  black background behind the agent card      (agent name given)
    track 4  agent card after the last clip              (agent name given)
    track 5  voiceover across the clip span              (voiceover given)
    soundtrack  background music at 30% with fades       (music given)
"""

import html
import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import List, Mapping, Optional, Sequence

from listingreel import config
from listingreel.core.timeline import clip_start_times, slideshow_duration
from listingreel.vendors.base import VendorClient
from listingreel.vendors.models import (
    ClipJobStatus,
    ShotstackRenderResponse,
    ShotstackSubmitResponse,
)

logger = logging.getLogger(__name__)

OVERLAY_WIDTH = 1080
OVERLAY_HEIGHT = 1920
AGENT_CARD_DURATION = 5.0
MUSIC_VOLUME = 0.3
MAX_OVERLAY_FEATURES = 4
_TEXT_SHADOW = "3px 3px 10px rgba(0, 0, 0, 1), 2px 2px 6px rgba(0, 0, 0, 0.9)"


@dataclass(frozen=True)
class TemplateStyle:
    title: str
    title_font: str
    title_size: str
    title_weight: str
    title_color: str
    address_font: str
    address_size: str
    address_weight: str
    stat_font: str
    stat_size: str
    stat_weight: str
    accent_color: str


DEFAULT_STYLE = "modern-luxe"

TEMPLATE_STYLES: Mapping[str, TemplateStyle] = MappingProxyType({
    "modern-luxe": TemplateStyle(
        "Modern Luxe", "'Montserrat', 'Helvetica Neue', sans-serif", "80px", "800", "white",
        "'Montserrat', sans-serif", "36px", "600",
        "'Montserrat', sans-serif", "40px", "700", "#8B5CF6",
    ),
    "just-listed": TemplateStyle(
        "Just Listed", "'Playfair Display', serif", "75px", "700", "white",
        "'Lato', sans-serif", "34px", "400",
        "'Lato', sans-serif", "38px", "700", "#3B82F6",
    ),
    "minimalist": TemplateStyle(
        "Now Available", "'Inter', sans-serif", "70px", "300", "white",
        "'Inter', sans-serif", "32px", "300",
        "'Inter', sans-serif", "36px", "600", "#6B7280",
    ),
    "cinematic": TemplateStyle(
        "Featured Property", "'Bebas Neue', 'Arial Black', sans-serif", "85px", "900", "white",
        "'Roboto', sans-serif", "38px", "700",
        "'Roboto', sans-serif", "42px", "900", "#EF4444",
    ),
    "luxury": TemplateStyle(
        "Luxury Estate", "'Cormorant Garamond', serif", "78px", "600", "#FFD700",
        "'Cormorant Garamond', serif", "35px", "500",
        "'Cormorant Garamond', serif", "39px", "600", "#FFD700",
    ),
    "real-estate-pro": TemplateStyle(
        "New Listing", "'Open Sans', sans-serif", "72px", "700", "white",
        "'Open Sans', sans-serif", "33px", "600",
        "'Open Sans', sans-serif", "37px", "700", "#10B981",
    ),
})

DEFAULT_COLOR_SCHEME = "purple"

COLOR_SCHEMES: Mapping[str, str] = MappingProxyType({
    "purple": "#6D28D9",
    "blue": "#0066FF",
    "teal": "#06B6D4",
    "green": "#10B981",
    "orange": "#F97316",
    "pink": "#EC4899",
})


def get_template_style(
    style: Optional[str], styles: Mapping[str, TemplateStyle] = TEMPLATE_STYLES
) -> TemplateStyle:
    return styles.get(style or DEFAULT_STYLE, styles[DEFAULT_STYLE])


def get_brand_color(
    color_scheme: Optional[str], schemes: Mapping[str, str] = COLOR_SCHEMES
) -> str:
    return schemes.get(color_scheme or DEFAULT_COLOR_SCHEME, schemes[DEFAULT_COLOR_SCHEME])


@dataclass(frozen=True)
class StitchClip:
    url: str
    duration: float


def _esc(value) -> str:
    return html.escape(str(value), quote=True)


def _html_asset(markup: str) -> dict:
    return {
        "type": "html",
        "html": markup,
        "css": "",
        "width": OVERLAY_WIDTH,
        "height": OVERLAY_HEIGHT,
    }


def _plural(count, singular: str, plural: str) -> str:
    return singular if count == 1 else plural


def _stat(value: str, label: str, style: TemplateStyle) -> str:
    return (
        '<div style="display: flex; flex-direction: column; align-items: flex-start;">'
        f'<span style="font-family: {style.stat_font}; font-size: {style.stat_size}; '
        f'font-weight: {style.stat_weight}; color: white; line-height: 1; margin-bottom: 8px; '
        f'text-shadow: {_TEXT_SHADOW};">{value}</span>'
        f'<span style="font-family: {style.address_font}; font-size: 20px; letter-spacing: 1px; '
        f'color: {style.accent_color}; text-shadow: {_TEXT_SHADOW};">{label}</span>'
        "</div>"
    )


def gradient_overlay_html() -> str:
    return (
        '<div style="position: absolute; top: 0; left: 0; width: 100%; height: 100%; '
        "background: linear-gradient(to bottom, rgba(0, 0, 0, 0.9) 0%, rgba(0, 0, 0, 0.4) 35%, "
        'rgba(0, 0, 0, 0.4) 65%, rgba(0, 0, 0, 0.9) 100%);"></div>'
    )


def property_overlay_html(property_data: dict, style: TemplateStyle) -> str:
    features = [f for f in property_data.get("features") or [] if f][:MAX_OVERLAY_FEATURES]
    beds = property_data.get("beds")
    baths = property_data.get("baths")
    car_spaces = property_data.get("car_spaces")
    land_size = property_data.get("land_size")

    stats = []
    if beds is not None:
        stats.append(_stat(_esc(beds), _plural(beds, "BEDROOM", "BEDROOMS"), style))
    if baths is not None:
        stats.append(_stat(_esc(baths), _plural(baths, "BATHROOM", "BATHROOMS"), style))
    if car_spaces:
        stats.append(_stat(_esc(car_spaces), _plural(car_spaces, "CAR SPACE", "CAR SPACES"), style))
    if land_size:
        stats.append(_stat(f"{_esc(land_size)}m²", "LAND SIZE", style))

    feature_line = ""
    if features:
        feature_line = (
            '<div style="font-size: 16px; letter-spacing: 0.5px; color: white; opacity: 0.95; '
            f'text-shadow: {_TEXT_SHADOW}; margin-top: 10px;">'
            f"{' • '.join(_esc(f) for f in features)}</div>"
        )

    return (
        '<div style="position: absolute; top: 0; left: 0; width: 100%; height: 100%; '
        "padding: 80px 60px; display: flex; flex-direction: column; "
        f'justify-content: space-between; font-family: {style.address_font}; color: white;">'
        '<div style="text-align: center;">'
        f'<div style="font-family: {style.title_font}; font-size: {style.title_size}; '
        f"font-weight: {style.title_weight}; color: {style.title_color}; "
        f'text-shadow: {_TEXT_SHADOW}; letter-spacing: 2px; margin-bottom: 25px;">'
        f"{_esc(style.title)}</div>"
        f'<div style="font-family: {style.address_font}; font-size: {style.address_size}; '
        f"font-weight: {style.address_weight}; color: white; letter-spacing: 1px; "
        f'text-shadow: {_TEXT_SHADOW};">{_esc(property_data.get("address", ""))}</div>'
        f"{feature_line}"
        "</div>"
        f'<div style="display: flex; align-items: center; gap: 45px;">{"".join(stats)}</div>'
        "</div>"
    )


def agent_card_html(agent: dict, brand_color: str) -> str:
    logo = ""
    if agent.get("logo"):
        logo = (
            f'<img src="{_esc(agent["logo"])}" style="max-width: 200px; max-height: 80px; '
            'object-fit: contain; margin-bottom: 60px;" />'
        )
    photo = ""
    if agent.get("photo"):
        photo = (
            f'<div style="width: 136px; height: 136px; border-radius: 50%; background: {brand_color}; '
            'display: flex; align-items: center; justify-content: center; padding: 6px;">'
            f'<img src="{_esc(agent["photo"])}" style="width: 120px; height: 120px; '
            'border-radius: 50%; border: 3px solid white; object-fit: cover;" /></div>'
        )
    contact = ""
    if agent.get("phone"):
        contact += (
            '<div style="font-size: 24px; opacity: 0.95; margin-bottom: 8px;">'
            f'{_esc(agent["phone"])}</div>'
        )
    if agent.get("email"):
        contact += (
            '<div style="font-size: 20px; opacity: 0.85; font-weight: 300;">'
            f'{_esc(agent["email"])}</div>'
        )

    return (
        '<div style="position: absolute; top: 0; left: 0; width: 100%; height: 100%; '
        "display: flex; flex-direction: column; align-items: center; justify-content: center; "
        "font-family: 'Helvetica Neue', Arial, sans-serif; color: white; padding: 60px;\">"
        f"{logo}"
        '<div style="display: flex; flex-direction: row; align-items: center; '
        'justify-content: center; gap: 30px; margin-bottom: 50px;">'
        f"{photo}"
        '<div style="text-align: left; max-width: 450px;">'
        '<div style="font-size: 36px; font-weight: 700; margin-bottom: 12px; line-height: 1.2;">'
        f'{_esc(agent["name"])}</div>'
        f"{contact}"
        "</div></div>"
        f'<div style="background: {brand_color}; padding: 15px 40px; border-radius: 12px; '
        'font-size: 20px; font-weight: 500; letter-spacing: 2px;">CONTACT ME TODAY</div>'
        "</div>"
    )


def build_edit(
    clips: Sequence[StitchClip],
    property_data: dict,
    agent: Optional[dict] = None,
    audio_url: Optional[str] = None,
    music_url: Optional[str] = None,
    style: Optional[str] = None,
    styles: Mapping[str, TemplateStyle] = TEMPLATE_STYLES,
    color_schemes: Mapping[str, str] = COLOR_SCHEMES,
) -> dict:
    if not clips:
        raise ValueError("No clips to stitch")

    template = get_template_style(style, styles)

    durations = [clip.duration for clip in clips]
    starts = clip_start_times(durations)
    video_clips: List[dict] = []
    for index, (clip, start) in enumerate(zip(clips, starts)):
        entry = {
            "asset": {"type": "video", "src": clip.url},
            "start": start,
            "length": clip.duration,
        }
        if index > 0:
            entry["transition"] = {"in": "fade", "out": "fade"}
        video_clips.append(entry)
    clips_duration = slideshow_duration(durations)
    intro_length = clips[0].duration

    tracks = [
        {"clips": video_clips},
        {"clips": [{
            "asset": _html_asset(gradient_overlay_html()),
            "start": 0,
            "length": intro_length,
            "transition": {"out": "fade"},
        }]},
        {"clips": [{
            "asset": _html_asset(property_overlay_html(property_data, template)),
            "start": 0,
            "length": intro_length,
            "transition": {"in": "fade", "out": "fade"},
        }]},
    ]

    if agent and agent.get("name"):
        brand_color = get_brand_color(agent.get("color_scheme"), color_schemes)
        tracks.append({"clips": [{
            "asset": _html_asset(
                '<div style="position: absolute; top: 0; left: 0; width: 100%; height: 100%; '
                'background: #000000;"></div>'
            ),
            "start": clips_duration,
            "length": AGENT_CARD_DURATION,
        }]})
        tracks.append({"clips": [{
            "asset": _html_asset(agent_card_html(agent, brand_color)),
            "start": clips_duration,
            "length": AGENT_CARD_DURATION,
            "transition": {"in": "fade"},
        }]})

    if audio_url:
        tracks.append({"clips": [{
            "asset": {"type": "audio", "src": audio_url, "volume": 1.0},
            "start": 0,
            "length": clips_duration,
        }]})

    timeline = {"tracks": tracks}
    if music_url:
        timeline["soundtrack"] = {
            "src": music_url,
            "effect": "fadeInFadeOut",
            "volume": MUSIC_VOLUME,
        }

    return {
        "timeline": timeline,
        "output": {"format": "mp4", "resolution": "hd", "aspectRatio": "9:16"},
    }


class ShotstackClient(VendorClient):
    name = "Shotstack"

    def __init__(self, api_key=config.SHOTSTACK_API_KEY, base_url=config.SHOTSTACK_API_URL,
                 **kwargs):
        super().__init__(api_key, base_url=base_url, **kwargs)

    def headers(self) -> dict:
        return {"x-api-key": self.api_key}

    async def submit(self, edit: dict) -> str:
        response = await self._request("POST", "/render", json=edit)
        render_id = ShotstackSubmitResponse.model_validate(self._json(response)).response.id
        logger.info(f"Shotstack render started: {render_id}")
        return render_id

    async def status(self, render_id: str) -> ClipJobStatus:
        response = await self._request("GET", f"/render/{render_id}", attempts=1)
        return ShotstackRenderResponse.model_validate(self._json(response)).normalized()
