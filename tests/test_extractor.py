"""Tests for text extraction and the page-image fallback."""
from __future__ import annotations

import pytest

from study_companion.documents import PdfDocument
from study_companion.extractor import extract, is_scan_like
from study_companion.models import ContentMode

from conftest import JPEG_MAGIC, FakeDocument


class TestExtractText:
    @pytest.mark.asyncio
    async def test_native_text(self, text_doc):
        content = await extract(text_doc, 1, 5)
        assert content.mode == ContentMode.TEXT
        assert "Page 1." in content.payload
        assert "Page 5." in content.payload
        assert text_doc.rendered == []

    @pytest.mark.asyncio
    async def test_short_text_switches_to_vision(self):
        doc = FakeDocument({1: "ab", 2: "cd", 3: "ef", 4: "gh", 5: "ij"})  # 10 chars
        content = await extract(doc, 1, 5)
        assert content.mode == ContentMode.VISION

    @pytest.mark.asyncio
    async def test_vision_renders_last_three_pages_in_order(self, scanned_doc):
        content = await extract(scanned_doc, 1, 5)
        assert content.mode == ContentMode.VISION
        assert content.payload == [b"page-3@1.5", b"page-4@1.5", b"page-5@1.5"]

    @pytest.mark.asyncio
    async def test_vision_window_clamped_to_start(self, scanned_doc):
        content = await extract(scanned_doc, 4, 5)
        assert scanned_doc.rendered == [4, 5]
        assert len(content.payload) == 2

    @pytest.mark.asyncio
    async def test_custom_threshold_and_window(self, text_doc):
        content = await extract(text_doc, 1, 5, min_chars=10_000, vision_pages=2, scale=2.0)
        assert content.mode == ContentMode.VISION
        assert content.payload == [b"page-4@2.0", b"page-5@2.0"]

    @pytest.mark.asyncio
    async def test_invalid_tunables_reset_to_defaults(self, scanned_doc):
        content = await extract(scanned_doc, 1, 5, min_chars="50", vision_pages=True, scale=0)
        assert content.mode == ContentMode.VISION
        assert content.payload == [b"page-3@1.5", b"page-4@1.5", b"page-5@1.5"]

    @pytest.mark.asyncio
    async def test_failed_pages_are_skipped(self):
        doc = FakeDocument({1: "", 2: "", 3: ""}, broken_pages={2})
        content = await extract(doc, 1, 3)
        assert content.mode == ContentMode.VISION
        assert content.payload == [b"page-1@1.5", b"page-3@1.5"]

    @pytest.mark.asyncio
    async def test_no_renderable_pages_is_error(self):
        doc = FakeDocument({1: "", 2: ""}, broken_pages={1, 2})
        content = await extract(doc, 1, 2)
        assert content.mode == ContentMode.ERROR
        assert content.payload is None

    @pytest.mark.asyncio
    async def test_unreadable_document_is_error(self):
        doc = FakeDocument({1: "x"}, text_error=OSError("corrupt file"))
        content = await extract(doc, 1, 1)
        assert content.mode == ContentMode.ERROR
        assert content.payload is None

    @pytest.mark.asyncio
    async def test_decided_per_call(self):
        # Native text early in the book, scanned later
        pages = {i: "A long paragraph of native text on a typeset page." for i in range(1, 4)}
        pages.update({i: "" for i in range(4, 8)})
        doc = FakeDocument(pages)
        first = await extract(doc, 1, 3)
        second = await extract(doc, 5, 7)
        assert first.mode == ContentMode.TEXT
        assert second.mode == ContentMode.VISION


class TestScanningDisabled:
    @pytest.mark.asyncio
    async def test_low_text_stays_text(self):
        doc = FakeDocument({1: "Fig. 3", 2: ""})
        content = await extract(doc, 1, 2, allow_vision=False)
        assert content.mode == ContentMode.TEXT
        assert content.payload == "Fig. 3"
        assert doc.rendered == []

    @pytest.mark.asyncio
    async def test_no_text_is_error(self, scanned_doc):
        doc = FakeDocument({1: "", 2: ""})
        content = await extract(doc, 1, 2, allow_vision=False)
        assert content.mode == ContentMode.ERROR


class TestIsScanLike:
    @pytest.mark.asyncio
    async def test_text_document(self, text_doc):
        assert await is_scan_like(text_doc) is False
        assert text_doc.text_calls == [(1, 3)]

    @pytest.mark.asyncio
    async def test_scanned_document(self, scanned_doc):
        assert await is_scan_like(scanned_doc) is True

    @pytest.mark.asyncio
    async def test_unreadable_counts_as_scanned(self):
        doc = FakeDocument({1: "x"}, text_error=OSError("boom"))
        assert await is_scan_like(doc) is True


class TestExtractPdf:
    @pytest.mark.asyncio
    async def test_text_pdf(self, text_pdf):
        content = await extract(PdfDocument(text_pdf), 2, 4)
        assert content.mode == ContentMode.TEXT
        assert "Page 2" in content.payload
        assert "Page 4" in content.payload
        assert "Page 5" not in content.payload

    @pytest.mark.asyncio
    async def test_blank_pdf_renders_jpegs(self, blank_pdf):
        content = await extract(PdfDocument(blank_pdf), 1, 4)
        assert content.mode == ContentMode.VISION
        assert len(content.payload) == 3
        assert all(img.startswith(JPEG_MAGIC) for img in content.payload)
