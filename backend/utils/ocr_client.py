# backend/utils/ocr_client.py
import re
import httpx
import logging
from typing import Optional
from config import settings

logger = logging.getLogger(__name__)

NOT_FOUND = "NOT_FOUND"

SYSTEM_PROMPT = """You are an OCR assistant specialized in reading bike frame numbers from images.

Your task:
1. Look for a barcode in the image - there should be text below or near the barcode
2. The frame number typically starts with "ASY" followed by numbers (e.g., ASY4104587)
3. Frame numbers can also be other alphanumeric formats like "VBK..." or just numbers
4. Extract ONLY the frame number text, nothing else

Rules:
- Return ONLY the frame number, no other text
- If you find multiple potential frame numbers, return the most likely one (usually near a barcode)
- If you cannot find any frame number, return "NOT_FOUND"
- Remove any spaces or special characters from the frame number
- The result should be a clean alphanumeric string"""

USER_PROMPT = "Read the frame number from this bike label image. Return only the frame number text, nothing else."


class OcrNotConfigured(RuntimeError):
    pass


class OcrGatewayError(Exception):
    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        self.message = message
        super().__init__(message)


# Strip everything but letters and digits; the NOT_FOUND sentinel maps to None
def clean_frame_number(raw: str) -> Optional[str]:
    cleaned = re.sub(r"[^a-zA-Z0-9]", "", raw or "").upper()
    if not cleaned or cleaned == NOT_FOUND.replace("_", ""):
        return None
    return cleaned


def as_data_url(image_base64: str) -> str:
    if image_base64.startswith("data:"):
        return image_base64
    return f"data:image/jpeg;base64,{image_base64}"


class OcrClient:
    def __init__(self, api_url: str = None, api_key: str = None, model: str = None, transport: httpx.AsyncBaseTransport = None):
        self.api_url = api_url or settings.AI_GATEWAY_URL
        self.api_key = api_key if api_key is not None else settings.AI_GATEWAY_API_KEY
        self.model = model or settings.OCR_MODEL
        self.transport = transport

    def _payload(self, image_base64: str) -> dict:
        return {
            "model": self.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": USER_PROMPT},
                        {"type": "image_url", "image_url": {"url": as_data_url(image_base64)}},
                    ],
                },
            ],
            "max_tokens": 100,
            # Low temperature for more consistent OCR
            "temperature": 0.1,
        }

    async def read_frame_number(self, image_base64: str) -> dict:
        if not self.api_key:
            logger.error("AI gateway API key is not configured")
            raise OcrNotConfigured("AI service not configured")

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        logger.info("Starting OCR for frame number detection")
        async with httpx.AsyncClient(transport=self.transport, timeout=30.0) as client:
            response = await client.post(self.api_url, json=self._payload(image_base64), headers=headers)

        if response.status_code == 429:
            raise OcrGatewayError(429, "Rate limit exceeded, please try again later")
        if response.status_code == 402:
            raise OcrGatewayError(402, "Payment required, please add credits")
        if response.status_code >= 400:
            logger.error("AI gateway error: %s %s", response.status_code, response.text[:500])
            raise OcrGatewayError(500, "AI service error")

        data = response.json()
        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            content = None
        raw = (content or "").strip() or NOT_FOUND
        logger.info("OCR result: %s", raw)
        return {"frameNumber": clean_frame_number(raw), "raw": raw}
