from __future__ import annotations

import logging
import time

import httpx

from study_companion.providers.base import LLMProvider, encode_images

log = logging.getLogger("study_companion.llm")


class OllamaProvider(LLMProvider):
    def __init__(self, base_url: str = "http://localhost:11434", model: str = "qwen3:8b"):
        self.base_url = base_url.rstrip("/")
        self.model = model

    async def generate(
        self,
        prompt: str,
        images: list[bytes] | None = None,
        temperature: float = 0.7,
        max_tokens: int = 4000,
    ) -> str:
        log.info("── PROMPT (%s, %d images) ──\n%s", self.model, len(images or []), prompt)
        t0 = time.monotonic()
        body: dict = {
            "model": self.model,
            "prompt": prompt,
            "stream": False,
            "think": False,
            "options": {"temperature": temperature, "num_predict": max_tokens},
        }
        if images:
            body["images"] = encode_images(images)

        # The orchestrator bounds the call; this timeout only guards direct use.
        async with httpx.AsyncClient(timeout=120.0) as client:
            resp = await client.post(f"{self.base_url}/api/generate", json=body)
            resp.raise_for_status()
            data = resp.json()
        elapsed = time.monotonic() - t0
        response = data["response"]
        tokens = data.get("eval_count", "?")
        log.info("── RESPONSE (%.1fs, %s tokens) ──\n%s", elapsed, tokens, response)
        return response

    def name(self) -> str:
        return f"ollama/{self.model}"
