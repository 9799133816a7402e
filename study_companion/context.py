"""Choose the page window that feeds a generation request."""
from __future__ import annotations

import logging

from study_companion.models import ContextLimits, ExtractionRequest, TriggerKind

_log = logging.getLogger("study_companion.context")

FALLBACK_LIMIT = 5


def _resolve_limit(trigger_kind: TriggerKind, is_scan_like: bool, limits: ContextLimits) -> int:
    if trigger_kind == TriggerKind.SECTION_END:
        limit = limits.section_limit
    elif is_scan_like:
        limit = limits.scan_limit
    else:
        limit = limits.text_limit

    # bool is an int subclass; True is not a page count
    if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
        _log.warning("Invalid context limit %r, resetting to %d", limit, FALLBACK_LIMIT)
        limit = FALLBACK_LIMIT
    return limit


def select_range(
    trigger_kind: TriggerKind,
    is_scan_like: bool,
    current_position: int,
    limits: ContextLimits | None = None,
) -> ExtractionRequest:
    """Return the page range ending at the reader's position.

    Section ends get the wide review window; periodic checkpoints use the
    narrower text or scan window, since scanned pages are sent as images.
    """
    limit = _resolve_limit(trigger_kind, is_scan_like, limits or ContextLimits())
    end_page = current_position
    start_page = max(1, end_page - limit + 1)
    return ExtractionRequest(start_page=start_page, end_page=end_page, trigger_kind=trigger_kind)
