"""Tests for background visual-mnemonic generation."""
from __future__ import annotations

import asyncio
from unittest.mock import patch

import pytest

from study_companion.images import ImageGenerator, placeholder_url, spawn_image_generation
from study_companion.models import ActivitySet, QuizItem


class FakeGenerator:
    """Stand-in for ImageGenerator with a controllable result."""

    def __init__(self, url="https://img.example/x.png", error=None, gate: asyncio.Event | None = None):
        self.url = url
        self.error = error
        self.gate = gate
        self.enabled = True
        self.prompts: list[str] = []

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.gate:
            await self.gate.wait()
        if self.error:
            raise self.error
        return self.url


def _visual_set(prompt="A lighthouse guiding ships"):
    return ActivitySet(quiz=[QuizItem(kind="visual", question="V", answer="A", image_prompt=prompt)])


class TestPlaceholder:
    def test_truncated_and_encoded(self):
        url = placeholder_url("A very long prompt about photosynthesis in leaves")
        assert url.startswith("https://placehold.co/800x600/")
        assert "A%20very%20long%20prompt" in url
        assert "photosynthesis" not in url


class TestImageGenerator:
    @pytest.mark.asyncio
    async def test_none_provider(self):
        gen = ImageGenerator(provider="none", api_key="k")
        assert gen.enabled is False
        assert (await gen.generate("a cat")).startswith("https://placehold.co/")

    @pytest.mark.asyncio
    async def test_missing_key_uses_placeholder(self):
        gen = ImageGenerator(provider="freepik", api_key="")
        assert (await gen.generate("a cat")).startswith("https://placehold.co/")

    @pytest.mark.asyncio
    async def test_freepik_failure_uses_placeholder(self):
        gen = ImageGenerator(provider="freepik", api_key="k")
        with patch.object(ImageGenerator, "_freepik", side_effect=RuntimeError("402")):
            url = await gen.generate("a cat")
        assert url.startswith("https://placehold.co/")

    @pytest.mark.asyncio
    async def test_freepik_success(self):
        gen = ImageGenerator(provider="freepik", api_key="k")

        async def fake_freepik(self, prompt):
            return "data:image/png;base64,AAAA"

        with patch.object(ImageGenerator, "_freepik", fake_freepik):
            assert await gen.generate("a cat") == "data:image/png;base64,AAAA"


class TestSpawnImageGeneration:
    @pytest.mark.asyncio
    async def test_reports_success_later(self):
        gate = asyncio.Event()
        gen = FakeGenerator(gate=gate)
        results = []

        task = spawn_image_generation(_visual_set(), gen, lambda url, status: results.append((url, status)))
        assert task is not None
        await asyncio.sleep(0)
        # caller is not blocked while the image is pending
        assert results == []

        gate.set()
        await task
        assert results == [("https://img.example/x.png", "success")]
        assert gen.prompts == ["A lighthouse guiding ships"]

    @pytest.mark.asyncio
    async def test_reports_error(self):
        gen = FakeGenerator(error=RuntimeError("quota"))
        results = []
        task = spawn_image_generation(_visual_set(), gen, lambda url, status: results.append((url, status)))
        await task
        assert results == [(None, "error")]

    @pytest.mark.asyncio
    async def test_nothing_to_draw(self):
        gen = FakeGenerator()
        assert spawn_image_generation(ActivitySet(), gen, lambda *a: None) is None
        assert gen.prompts == []

    @pytest.mark.asyncio
    async def test_disabled_generator(self):
        gen = FakeGenerator()
        gen.enabled = False
        assert spawn_image_generation(_visual_set(), gen, lambda *a: None) is None

    @pytest.mark.asyncio
    async def test_merge_by_replacement(self):
        activities = _visual_set()
        shown = {"set": activities}

        def on_done(url, status):
            shown["set"] = shown["set"].with_image_url(url)

        await spawn_image_generation(activities, FakeGenerator(), on_done)
        assert shown["set"].visual_item().image_url == "https://img.example/x.png"
        assert activities.visual_item().image_url is None
