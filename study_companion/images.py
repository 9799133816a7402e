"""Visual-mnemonic image generation, run detached from activity generation."""
from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Callable
from urllib.parse import quote

import httpx

from study_companion.models import ActivitySet

_log = logging.getLogger("study_companion.images")
_bg_log = logging.getLogger("study_companion.bg")

FREEPIK_URL = "https://api.freepik.com/v1/ai/text-to-image"

# Background image tasks; referenced here so they are not garbage collected mid-flight.
_bg_tasks: set[asyncio.Task] = set()


def placeholder_url(prompt: str) -> str:
    short = quote(prompt[:20] + "...")
    return f"https://placehold.co/800x600/indigo/white?text={short}"


class ImageGenerator:
    """Freepik text-to-image, falling back to a labelled placeholder."""

    def __init__(self, provider: str = "freepik", api_key: str | None = None, timeout: float = 60.0):
        self.provider = provider.lower()
        self.api_key = api_key if api_key is not None else os.environ.get("FREEPIK_API_KEY", "")
        self.timeout = timeout

    @property
    def enabled(self) -> bool:
        return self.provider != "none"

    async def _freepik(self, prompt: str) -> str:
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            resp = await client.post(
                FREEPIK_URL,
                headers={"Accept": "application/json", "x-freepik-api-key": self.api_key},
                json={"prompt": prompt, "image": {"size": "square_1_1"}},
            )
            resp.raise_for_status()
            data = resp.json()
        images = data.get("data") or []
        if not images or not images[0].get("base64"):
            raise RuntimeError("No image data returned from Freepik")
        return f"data:image/png;base64,{images[0]['base64']}"

    async def generate(self, prompt: str) -> str:
        if self.provider != "freepik":
            return placeholder_url(prompt)
        if not self.api_key:
            _log.warning("Freepik API key missing, using placeholder")
            return placeholder_url(prompt)
        try:
            return await self._freepik(prompt)
        except Exception as e:
            _log.warning("Freepik failed, using placeholder: %s", e)
            return placeholder_url(prompt)


async def _generate_in_background(
    prompt: str,
    generator: ImageGenerator,
    on_done: Callable[[str | None, str], None],
) -> None:
    try:
        _bg_log.info("Background image generation for: %.80s", prompt)
        url = await generator.generate(prompt)
    except asyncio.CancelledError:
        _bg_log.info("Background image generation cancelled")
        raise
    except Exception as e:
        _bg_log.warning("Background image generation failed: %s", e)
        on_done(None, "error")
        return
    _bg_log.info("Background image generation complete")
    on_done(url, "success")


def spawn_image_generation(
    activity_set: ActivitySet,
    generator: ImageGenerator,
    on_done: Callable[[str | None, str], None],
) -> asyncio.Task | None:
    """Start generating the visual item's image without waiting for it.

    *on_done* receives ``(url, "success")`` or ``(None, "error")``; merging
    the URL into displayed state is up to the caller, typically through
    ``ActivitySet.with_image_url``.  Returns None when there is nothing to draw.
    """
    visual = activity_set.visual_item()
    if visual is None or not visual.image_prompt or not generator.enabled:
        return None
    task = asyncio.create_task(_generate_in_background(visual.image_prompt, generator, on_done))
    _bg_tasks.add(task)
    task.add_done_callback(_bg_tasks.discard)
    return task
