from __future__ import annotations

import logging
import os
import time

import httpx

from study_companion.providers.base import LLMProvider, encode_images

log = logging.getLogger("study_companion.llm")

GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/models"


class GeminiProvider(LLMProvider):
    """Google AI Studio generateContent over REST; multimodal."""

    def __init__(self, model: str = "gemini-2.5-flash", api_key: str | None = None, base_url: str = GEMINI_BASE_URL):
        self.api_key = api_key or os.environ.get("GEMINI_API_KEY", "")
        if not self.api_key:
            raise ValueError("GEMINI_API_KEY is not configured")
        self.model = model
        self.url = f"{base_url.rstrip('/')}/{model}:generateContent"

    def build_payload(self, prompt: str, images: list[bytes] | None, temperature: float, max_tokens: int) -> dict:
        parts: list[dict] = [{"text": prompt}]
        for b64 in encode_images(images):
            parts.append({"inline_data": {"mime_type": "image/jpeg", "data": b64}})
        return {
            "contents": [{"role": "user", "parts": parts}],
            "generationConfig": {"temperature": temperature, "maxOutputTokens": max_tokens},
        }

    async def generate(
        self,
        prompt: str,
        images: list[bytes] | None = None,
        temperature: float = 0.7,
        max_tokens: int = 4000,
    ) -> str:
        t0 = time.monotonic()
        async with httpx.AsyncClient(timeout=120.0) as client:
            resp = await client.post(
                self.url,
                params={"key": self.api_key},
                json=self.build_payload(prompt, images, temperature, max_tokens),
            )
            resp.raise_for_status()
            data = resp.json()

        candidates = data.get("candidates") or []
        if not candidates:
            raise RuntimeError(f"No candidates in Gemini response: {data.get('promptFeedback')}")
        parts = candidates[0].get("content", {}).get("parts", [])
        text = "".join(p.get("text", "") for p in parts)
        if not text:
            raise RuntimeError("Empty Gemini response")
        log.info("Gemini %s answered in %.1fs", self.model, time.monotonic() - t0)
        return text

    def name(self) -> str:
        return f"gemini/{self.model}"
