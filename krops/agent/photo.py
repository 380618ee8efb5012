import base64
import logging
from typing import Optional

from google import genai
from google.genai import types

logger = logging.getLogger("krops.agent")

PHOTO_PROMPT = (
    "A high-quality, professional studio photograph of an agricultural medicine bottle for farmers. "
    'The bottle is labeled clearly with the name "{name}". The packaging is professional, showing a '
    "clean design typical of agricultural fungicides or pesticides. Neutral, bright background. "
    "Product shot style."
)


class MedicinePhotographer:
    """Generates a square product shot labelled with a medicine name."""

    def __init__(self, client: genai.Client, model: str = "gemini-2.5-flash-image"):
        self.client = client
        self.model = model

    async def photograph(self, medicine_name: str) -> Optional[str]:
        logger.info("[Photo] Requesting product shot for %r", medicine_name)
        response = await self.client.aio.models.generate_content(
            model=self.model,
            contents=PHOTO_PROMPT.format(name=medicine_name),
            config=types.GenerateContentConfig(
                image_config=types.ImageConfig(aspect_ratio="1:1"),
            ),
        )

        image = first_inline_image(response)
        if image is None:
            logger.info("[Photo] No image returned for %r", medicine_name)
        return image


def first_inline_image(response) -> Optional[str]:
    candidates = getattr(response, "candidates", None) or []
    if not candidates or candidates[0].content is None:
        return None
    for part in candidates[0].content.parts or []:
        blob = part.inline_data
        if blob is not None and blob.data:
            mime = blob.mime_type or "image/png"
            return f"data:{mime};base64,{base64.b64encode(blob.data).decode('ascii')}"
    return None
