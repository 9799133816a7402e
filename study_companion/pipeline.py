"""One checkpoint, end to end: page window, extraction, provider chain."""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from study_companion.chain import build_chain
from study_companion.context import select_range
from study_companion.extractor import extract
from study_companion.orchestrator import generate_activities

if TYPE_CHECKING:
    from study_companion.config import Settings
    from study_companion.documents import Document
    from study_companion.models import ActivitySet, TriggerKind
    from study_companion.providers.base import LLMProvider

_log = logging.getLogger("study_companion.pipeline")

GENERIC_FAILURE = "AI failed to read this page. Please try another page."


async def run_checkpoint(
    document: Document,
    current_page: int,
    trigger_kind: TriggerKind,
    settings: Settings,
    providers: dict[str, LLMProvider],
    is_scan_like: bool = False,
) -> ActivitySet | None:
    if not settings.enable_ai_features:
        _log.warning("AI features are disabled in settings")
        return None

    request = select_range(trigger_kind, is_scan_like, current_page, settings.context_limits())
    _log.info("Checkpoint %s at page %d: context pages %d-%d (scan-like: %s)",
              trigger_kind.value, current_page, request.start_page, request.end_page, is_scan_like)

    content = await extract(
        document,
        request.start_page,
        request.end_page,
        min_chars=settings.scan_char_threshold,
        vision_pages=settings.vision_page_window,
        scale=settings.render_scale,
        allow_vision=settings.enable_pdf_scanning,
    )
    chain = build_chain(
        settings.preferred_provider,
        content.mode,
        settings.enable_fallback,
        vision_preference=settings.vision_provider,
    )
    return await generate_activities(content, request.trigger_kind, chain, providers)
