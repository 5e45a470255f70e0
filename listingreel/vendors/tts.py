"""
ElevenLabs text-to-speech client.
"""

import logging
from typing import Mapping

from listingreel import config
from listingreel.core.catalog import VOICE_IDS, get_voice_id
from listingreel.core.errors import VendorError
from listingreel.vendors.base import VendorClient

logger = logging.getLogger(__name__)

SAMPLE_TEXT = (
    "Welcome to this stunning property. This beautifully designed home "
    "offers modern living at its finest."
)


class ElevenLabsClient(VendorClient):
    name = "ElevenLabs"
    base_url = "https://api.elevenlabs.io/v1"

    def __init__(self, api_key=config.ELEVENLABS_API_KEY,
                 voice_ids: Mapping[str, str] = VOICE_IDS, **kwargs):
        super().__init__(api_key, **kwargs)
        self.voice_ids = voice_ids

    def headers(self) -> dict:
        return {"xi-api-key": self.api_key, "Accept": "audio/mpeg"}

    async def synthesize(self, text: str, voice: str) -> bytes:
        """Speak `text` with a voice slug or display name; returns MP3 bytes."""
        voice_id = get_voice_id(voice, self.voice_ids)
        logger.info(f"Generating speech with voice {voice} ({voice_id}), {len(text)} chars")
        response = await self._request(
            "POST",
            f"/text-to-speech/{voice_id}",
            json={
                "text": text,
                "model_id": "eleven_monolingual_v1",
                "voice_settings": {"stability": 0.5, "similarity_boost": 0.75},
            },
        )
        if not response.content:
            raise VendorError(self.name, "ElevenLabs returned empty audio")
        return response.content

    async def preview(self, voice: str) -> bytes:
        return await self.synthesize(SAMPLE_TEXT, voice)
