"""Decide when a reader should be offered a study checkpoint."""
from __future__ import annotations

from typing import TYPE_CHECKING

from study_companion.models import TriggerKind, TriggerState

if TYPE_CHECKING:
    from study_companion.config import Settings

CHECKPOINT_INTERVAL = 5
# A periodic checkpoint this close to the end is skipped; the section end fires instead.
MIN_GAP_THRESHOLD = 3

_HIDDEN = TriggerState(show=False, kind=None)


def decide(
    current_position: int | None,
    total_length: int | None,
    interval: int = CHECKPOINT_INTERVAL,
    gap_threshold: int = MIN_GAP_THRESHOLD,
) -> TriggerState:
    """Return the checkpoint state for the reader's current position.

    Pure and recomputed on every page turn.  Not debounced: the caller must
    not re-show a dismissed prompt until the position changes.
    """
    if not current_position or not total_length or current_position < 1 or total_length < 1:
        return _HIDDEN

    # Page counts of reflowable formats can be off by one, hence the tolerance.
    if current_position >= total_length - 1:
        return TriggerState(show=True, kind=TriggerKind.SECTION_END)

    if current_position % interval == 0:
        remaining = total_length - current_position
        if remaining < gap_threshold:
            return _HIDDEN
        return TriggerState(show=True, kind=TriggerKind.PERIODIC)

    return _HIDDEN


def should_display(state: TriggerState, settings: Settings) -> bool:
    """Apply the reader's checkpoint preferences to a trigger state.

    In manual chapter mode the reader opens section reviews explicitly, so a
    SECTION_END trigger is not shown; periodic prompts can be switched off.
    """
    if not state.show:
        return False
    if state.kind == TriggerKind.SECTION_END:
        return not settings.manual_chapter_mode
    return settings.enable_periodic_checkpoints
