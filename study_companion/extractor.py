"""Pull study content out of a page range, falling back to page images.

Native-text pages go to the model as text.  When a range yields almost no
text the pages are probably scans, so the trailing pages are rasterized and
sent to a vision model instead.  The decision is made on every call: hybrid
books can be text-native early on and scanned later.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from study_companion.models import ContentMode, ExtractedContent

if TYPE_CHECKING:
    from study_companion.documents import Document

_log = logging.getLogger("study_companion.extract")

MIN_TEXT_CHARS = 50
VISION_PAGE_WINDOW = 3
RENDER_SCALE = 1.5
SCAN_SAMPLE_PAGES = 3


def _number(value, default, minimum, name: str):
    # bool is an int subclass; True is not a page count
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value < minimum:
        _log.warning("Invalid %s %r, resetting to %s", name, value, default)
        return default
    return value


async def extract(
    document: Document,
    start_page: int,
    end_page: int,
    *,
    min_chars: int = MIN_TEXT_CHARS,
    vision_pages: int = VISION_PAGE_WINDOW,
    scale: float = RENDER_SCALE,
    allow_vision: bool = True,
) -> ExtractedContent:
    min_chars = _number(min_chars, MIN_TEXT_CHARS, 0, "text threshold")
    vision_pages = int(_number(vision_pages, VISION_PAGE_WINDOW, 1, "vision page window"))
    scale = _number(scale, RENDER_SCALE, 0.1, "render scale")

    _log.info("Extracting pages %d-%d", start_page, end_page)
    try:
        text = await document.get_text(start_page, end_page)
    except Exception as e:
        _log.warning("Text extraction failed for pages %d-%d: %s", start_page, end_page, e)
        return ExtractedContent.error()

    text = (text or "").strip()
    if len(text) >= min_chars:
        return ExtractedContent(ContentMode.TEXT, text)

    if not allow_vision:
        if text:
            _log.info("Low text (%d chars) and scanning disabled, sending as text", len(text))
            return ExtractedContent(ContentMode.TEXT, text)
        _log.warning("No text on pages %d-%d and scanning disabled", start_page, end_page)
        return ExtractedContent.error()

    vision_start = max(start_page, end_page - vision_pages + 1)
    _log.info("Only %d chars of text, likely scanned. Rendering pages %d-%d",
              len(text), vision_start, end_page)

    images: list[bytes] = []
    for page in range(vision_start, end_page + 1):
        try:
            images.append(await document.render_page_image(page, scale))
        except Exception as e:
            _log.warning("  Page %d failed to render: %s", page, e)

    if not images:
        return ExtractedContent.error()
    return ExtractedContent(ContentMode.VISION, images)


async def is_scan_like(
    document: Document,
    sample_pages: int = SCAN_SAMPLE_PAGES,
    min_chars: int = MIN_TEXT_CHARS,
) -> bool:
    """Guess whether a whole document is scanned by sampling its first pages."""
    sample_pages = int(_number(sample_pages, SCAN_SAMPLE_PAGES, 1, "scan sample size"))
    min_chars = _number(min_chars, MIN_TEXT_CHARS, 0, "text threshold")
    try:
        text = await document.get_text(1, sample_pages)
    except Exception as e:
        _log.warning("Scan detection failed, assuming scanned: %s", e)
        return True
    return len((text or "").strip()) < min_chars
