from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from pathlib import Path

import fitz  # PyMuPDF

_log = logging.getLogger("study_companion.documents")

PAGE_SEPARATOR = "\n\n"


class Document(ABC):
    """A paged source the pipeline can read text from and rasterize."""

    @abstractmethod
    async def get_text(self, start_page: int, end_page: int) -> str:
        ...

    @abstractmethod
    async def render_page_image(self, page_number: int, scale: float = 1.5) -> bytes:
        ...

    @property
    @abstractmethod
    def page_count(self) -> int:
        ...


class PdfDocument(Document):
    """PDF backend.  Pages are 1-based; the file is reopened per call so
    concurrent checkpoints never share a PyMuPDF handle across threads."""

    def __init__(self, source: str | Path | bytes):
        self._source = source
        with self._open() as doc:
            self._page_count = doc.page_count

    def _open(self) -> fitz.Document:
        if isinstance(self._source, bytes):
            return fitz.open(stream=self._source, filetype="pdf")
        return fitz.open(str(self._source))

    @property
    def page_count(self) -> int:
        return self._page_count

    async def get_text(self, start_page: int, end_page: int) -> str:
        def _extract():
            parts = []
            with self._open() as doc:
                for number in range(max(1, start_page), min(end_page, doc.page_count) + 1):
                    parts.append(doc[number - 1].get_text("text").strip())
            return PAGE_SEPARATOR.join(parts).strip()

        return await asyncio.get_event_loop().run_in_executor(None, _extract)

    async def render_page_image(self, page_number: int, scale: float = 1.5) -> bytes:
        def _render():
            with self._open() as doc:
                if page_number < 1 or page_number > doc.page_count:
                    raise ValueError(f"page {page_number} out of range 1..{doc.page_count}")
                pix = doc[page_number - 1].get_pixmap(matrix=fitz.Matrix(scale, scale))
                return pix.tobytes("jpeg", jpg_quality=80)

        return await asyncio.get_event_loop().run_in_executor(None, _render)

    def outline(self) -> list[tuple[str, int]]:
        """Built-in bookmarks as ``(title, page)`` pairs, top level only."""
        with self._open() as doc:
            toc = doc.get_toc(simple=True)
        return [(title, page) for level, title, page in toc if level == 1 and page >= 1]

    def content_start_page(self) -> int | None:
        """First chapter page from the outline, or None without bookmarks."""
        chapters = self.outline()
        if not chapters:
            return None
        _log.info("Outline found (%d chapters), content starts on page %d",
                  len(chapters), chapters[0][1])
        return chapters[0][1]
