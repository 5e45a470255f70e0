"""
Voice and music lookup tables.

Built once at import as read-only mappings. Components that need them take the
table as an argument, so tests can hand in their own.
"""

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import List, Mapping, Optional

from listingreel import config

logger = logging.getLogger(__name__)

DEFAULT_VOICE = "australian-male"

# Display name (as shown in the UI) -> voice slug
VOICE_NAMES: Mapping[str, str] = MappingProxyType({
    "Australian Male": "australian-male",
    "Australian Female": "australian-female",
    "British Male": "british-male",
    "British Female": "british-female",
    "American Male": "american-male",
    "American Female": "american-female",
})

# Voice slug -> ElevenLabs voice id
VOICE_IDS: Mapping[str, str] = MappingProxyType({
    "australian-male": "TxGEqnHWrfWFTfGW9XjX",
    "australian-female": "EXAVITQu4vr4xnSDxMaL",
    "british-male": "VR6AewLTigWG4xSOukaG",
    "british-female": "21m00Tcm4TlvDq8ikWAM",
    "american-male": "VR6AewLTigWG4xSOukaG",
    "american-female": "EXAVITQu4vr4xnSDxMaL",
})


def get_voice_id(voice: Optional[str], voice_ids: Mapping[str, str] = VOICE_IDS) -> str:
    """ElevenLabs id for a voice slug or display name. Unknown -> Australian male."""
    slug = VOICE_NAMES.get(voice or "", voice or "")
    return voice_ids.get(slug, voice_ids[DEFAULT_VOICE])


MUSIC_CATEGORIES = ("modern", "ambient", "luxury", "energetic", "classical")


@dataclass(frozen=True)
class MusicTrack:
    track_id: str
    name: str
    duration: int  # seconds
    category: str
    url: str


def _track(track_id: str, name: str, duration: int, category: str) -> MusicTrack:
    return MusicTrack(
        track_id=track_id,
        name=name,
        duration=duration,
        category=category,
        url=f"{config.MUSIC_BASE_URL}/{track_id}.mp3",
    )


MUSIC_LIBRARY: Mapping[str, MusicTrack] = MappingProxyType({
    t.track_id: t
    for t in (
        _track("upbeat-modern-1", "Upbeat Modern 1", 120, "modern"),
        _track("upbeat-modern-2", "Upbeat Modern 2", 130, "modern"),
        _track("upbeat-modern-3", "Upbeat Modern 3", 125, "modern"),
        _track("calm-ambient-1", "Calm Ambient 1", 150, "ambient"),
        _track("calm-ambient-2", "Calm Ambient 2", 140, "ambient"),
        _track("calm-ambient-3", "Calm Ambient 3", 145, "ambient"),
        _track("luxury-elegant-1", "Luxury Elegant 1", 135, "luxury"),
        _track("luxury-elegant-2", "Luxury Elegant 2", 128, "luxury"),
        _track("luxury-elegant-3", "Luxury Elegant 3", 142, "luxury"),
        _track("energetic-pop-1", "Energetic Pop 1", 118, "energetic"),
        _track("energetic-pop-2", "Energetic Pop 2", 122, "energetic"),
        _track("energetic-pop-3", "Energetic Pop 3", 115, "energetic"),
        _track("classical-sophisticated-1", "Classical Sophisticated 1", 160, "classical"),
        _track("classical-sophisticated-2", "Classical Sophisticated 2", 155, "classical"),
        _track("classical-sophisticated-3", "Classical Sophisticated 3", 148, "classical"),
    )
})

# UI track titles -> library ids
MUSIC_TRACK_NAMES: Mapping[str, str] = MappingProxyType({
    "Horizon - Epic Journey": "upbeat-modern-1",
    "Asteroid - Modern & Chill": "upbeat-modern-2",
    "Pulse - Dance Pop": "upbeat-modern-3",
    "Drift - Ambient Tones": "calm-ambient-1",
    "Serenity - Nature Sounds": "calm-ambient-2",
    "Flow - Meditation": "calm-ambient-3",
    "Summit - Orchestral Rise": "luxury-elegant-1",
    "Vast - Dramatic Sweep": "luxury-elegant-2",
    "Sunset - Acoustic Vibes": "luxury-elegant-3",
    "Drive - Electronic": "energetic-pop-1",
    "Spark - Indie Rock": "energetic-pop-2",
    "Waves - Lo-fi Beats": "energetic-pop-3",
    "Nocturne - Piano Solo": "classical-sophisticated-1",
    "Adagio - String Quartet": "classical-sophisticated-2",
    "Grace - Chamber Music": "classical-sophisticated-3",
})


def get_music_url(
    music: Optional[str], library: Mapping[str, MusicTrack] = MUSIC_LIBRARY
) -> Optional[str]:
    """URL for a track id or UI title; None when there is no such track."""
    if not music:
        return None
    track = library.get(MUSIC_TRACK_NAMES.get(music, music))
    if track is None:
        logger.warning(f"Music track not found: {music}")
        return None
    return track.url


def get_tracks_by_category(
    category: str, library: Mapping[str, MusicTrack] = MUSIC_LIBRARY
) -> List[str]:
    return [track_id for track_id, track in library.items() if track.category == category]
