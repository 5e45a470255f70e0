"""
Voiceover script generation through the Anthropic messages API.
"""

import logging

from listingreel import config
from listingreel.core.errors import VendorError
from listingreel.core.validation import format_price
from listingreel.vendors.base import VendorClient
from listingreel.vendors.models import MessageResponse

logger = logging.getLogger(__name__)

ANTHROPIC_VERSION = "2023-06-01"

SYSTEM_PROMPT = (
    "You are a professional real estate copywriter specializing in video scripts for "
    "property listings. Write compelling, concise scripts that highlight property "
    "features and create emotional appeal."
)


def build_script_prompt(property_data: dict) -> str:
    features = property_data.get("features") or []
    land_size = property_data.get("land_size")
    description = property_data.get("description")

    lines = [
        "You are a professional real estate copywriter. Write a compelling 30-second "
        "video script for a property listing.",
        "",
        "Property Details:",
        f"- Address: {property_data.get('address') or 'this stunning property'}",
        f"- Price: {format_price(property_data.get('price')) or 'contact for price'}",
        f"- Bedrooms: {property_data.get('beds', '')}",
        f"- Bathrooms: {property_data.get('baths', '')}",
        f"- Size: {f'{land_size} square meters' if land_size else 'generous living space'}",
        f"- Features: {', '.join(features) if features else 'modern amenities'}",
    ]
    if description:
        lines.append(f"- Additional Info: {description}")
    lines += [
        "",
        "Requirements:",
        "- Write in a warm, enthusiastic tone",
        "- Highlight key selling points",
        "- Keep it concise (30 seconds when read aloud, approximately 75-90 words)",
        "- End with a strong call-to-action",
        "- Use vivid, descriptive language",
        "- Format: 3 short paragraphs",
        "- Focus on lifestyle benefits and emotional appeal",
        "",
        "Write only the script, no preamble or explanations.",
    ]
    return "\n".join(lines)


class ScriptWriter(VendorClient):
    name = "Anthropic"
    base_url = "https://api.anthropic.com/v1"

    def __init__(self, api_key=config.ANTHROPIC_API_KEY, model=config.ANTHROPIC_MODEL,
                 **kwargs):
        super().__init__(api_key, **kwargs)
        self.model = model

    def headers(self) -> dict:
        return {"x-api-key": self.api_key, "anthropic-version": ANTHROPIC_VERSION}

    async def write(self, property_data: dict) -> str:
        response = await self._request(
            "POST",
            "/messages",
            json={
                "model": self.model,
                "max_tokens": 300,
                "temperature": 0.8,
                "system": SYSTEM_PROMPT,
                "messages": [{"role": "user", "content": build_script_prompt(property_data)}],
            },
        )
        script = MessageResponse.model_validate(self._json(response)).text
        if not script:
            raise VendorError(self.name, "No script generated")
        logger.info(f"Script generated: {len(script)} characters")
        return script
