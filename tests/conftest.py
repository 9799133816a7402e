"""Shared test fixtures."""
from __future__ import annotations

import asyncio
import json

import fitz
import pytest

from study_companion.documents import Document

JPEG_MAGIC = b"\xff\xd8"


class FakeDocument(Document):
    """In-memory document: page number -> text, rendering to tagged bytes."""

    def __init__(self, pages: dict[int, str], broken_pages=(), text_error: Exception | None = None):
        self.pages = pages
        self.broken_pages = set(broken_pages)
        self.text_error = text_error
        self.rendered: list[int] = []
        self.text_calls: list[tuple[int, int]] = []

    @property
    def page_count(self) -> int:
        return max(self.pages) if self.pages else 0

    async def get_text(self, start_page: int, end_page: int) -> str:
        self.text_calls.append((start_page, end_page))
        if self.text_error:
            raise self.text_error
        return "\n\n".join(self.pages.get(p, "") for p in range(start_page, end_page + 1)).strip()

    async def render_page_image(self, page_number: int, scale: float = 1.5) -> bytes:
        if page_number in self.broken_pages:
            raise RuntimeError(f"cannot render page {page_number}")
        self.rendered.append(page_number)
        return f"page-{page_number}@{scale}".encode()


class FakeLLM:
    """Scripted provider.  Avoids AsyncMock's `name` attribute issue."""

    def __init__(self, responses=None, error: Exception | None = None, delay: float = 0.0, label: str = "fake-llm"):
        self._responses = responses or []
        self._error = error
        self._delay = delay
        self._label = label
        self.calls: list[dict] = []

    async def generate(self, prompt, images=None, temperature=0.7, max_tokens=4000):
        self.calls.append({
            "prompt": prompt,
            "images": images,
            "temperature": temperature,
            "max_tokens": max_tokens,
        })
        if self._delay:
            await asyncio.sleep(self._delay)
        if self._error:
            raise self._error
        idx = min(len(self.calls) - 1, len(self._responses) - 1)
        return self._responses[idx]

    def name(self) -> str:
        return self._label

    @property
    def call_count(self):
        return len(self.calls)


@pytest.fixture
def activity_payload():
    """A full provider payload in the shape the prompt asks for."""
    return {
        "quiz": [
            {
                "type": "mcq",
                "question": "In which year did the French Revolution begin?",
                "options": ["1776", "1789", "1815", "1848"],
                "answer": "1789",
            },
            {
                "type": "mcq",
                "question": "Who was king of France in 1789?",
                "options": ["Louis XIV", "Louis XVI", "Napoleon", "Charles X"],
                "answer": "louis xvi",
            },
        ],
        "timeline": [
            {
                "type": "timeline",
                "question": "Arrange correctly",
                "events": [
                    {"id": "e1", "label": "Estates-General convenes", "order": 1},
                    {"id": "e2", "label": "Storming of the Bastille", "order": 2},
                ],
            }
        ],
        "concept_map": {
            "type": "concept_map",
            "title": "Causes of the Revolution",
            "mermaid_code": 'graph TD; A["Debt"] --> B["Estates-General"];',
        },
        "summary_bullet_points": ["Fiscal crisis", "Third Estate demands"],
        "short_summary": "Debt and inequality pushed France into revolution.",
        "visual_concept": "A crowd storming a medieval fortress at dawn.",
    }


@pytest.fixture
def activity_json(activity_payload):
    return json.dumps(activity_payload)


@pytest.fixture
def text_doc():
    """Five pages of native text."""
    return FakeDocument({
        i: f"Page {i}. The French Revolution began in 1789 and reshaped European politics."
        for i in range(1, 6)
    })


@pytest.fixture
def scanned_doc():
    """Five pages that yield almost no text, like a scanned book."""
    return FakeDocument({1: "", 2: "12", 3: "", 4: "iv", 5: ""})


@pytest.fixture
def text_pdf(tmp_path):
    """A real six-page PDF with text and a two-entry outline."""
    path = tmp_path / "history.pdf"
    doc = fitz.open()
    for i in range(1, 7):
        page = doc.new_page()
        page.insert_text((72, 72), f"Page {i}: the Revolution began in 1789.", fontsize=11)
        page.insert_text((72, 100), "The Estates-General met at Versailles.", fontsize=11)
    doc.set_toc([[1, "Preface", 1], [1, "Chapter 1", 3]])
    doc.save(str(path))
    doc.close()
    return path


@pytest.fixture
def blank_pdf(tmp_path):
    """A four-page PDF without any text layer."""
    path = tmp_path / "scan.pdf"
    doc = fitz.open()
    for _ in range(4):
        page = doc.new_page()
        page.draw_rect(fitz.Rect(72, 72, 300, 300), color=(0, 0, 0), fill=(0.5, 0.5, 0.5))
    doc.save(str(path))
    doc.close()
    return path
