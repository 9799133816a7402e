"""Turn a model's loosely-typed JSON into a trusted ActivitySet."""
from __future__ import annotations

import logging

from study_companion.models import ActivitySet, ConceptMap, QuizItem, TimelineEvent, TimelineItem

_log = logging.getLogger("study_companion.normalize")

VISUAL_QUESTION = "What concept does this image represent?"
VISUAL_ANSWER_FALLBACK = "Key Concept"


class ActivityParseError(ValueError):
    """The provider answered, but not with an activity-set object."""


def _text(value) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _match_option(answer: str, options: list[str]) -> str | None:
    """Map *answer* onto one of *options*: exact, case-insensitive, then prefix.

    Models often answer "B" or "B) Paris." for the option "B) Paris".  An
    answer that extends several options maps to the longest of them.
    """
    if answer in options:
        return answer
    lowered = answer.lower()
    if not lowered:
        return None
    for opt in options:
        if opt.lower() == lowered:
            return opt
    for opt in options:
        if opt.lower().startswith(lowered):
            return opt
    extended = [opt for opt in options if lowered.startswith(opt.lower())]
    if extended:
        return max(extended, key=len)
    return None


def _normalize_quiz_item(raw) -> QuizItem | None:
    if not isinstance(raw, dict):
        _log.info("  Dropping quiz item: expected object, got %s", type(raw).__name__)
        return None

    kind = _text(raw.get("type") or raw.get("kind") or "mcq").lower()
    question = _text(raw.get("question"))

    if kind == "visual":
        return QuizItem(
            kind="visual",
            question=question or VISUAL_QUESTION,
            answer=_text(raw.get("answer")) or VISUAL_ANSWER_FALLBACK,
            image_prompt=_text(raw.get("image_prompt") or raw.get("imagePrompt")) or None,
            image_url=raw.get("image_url") or None,
        )

    options = raw.get("options")
    if not isinstance(options, list):
        options = []
    options = [_text(o) for o in options if _text(o)]
    if not options:
        _log.info("  Dropping mcq %r: no options", question[:60])
        return None

    answer = _match_option(_text(raw.get("answer")), options)
    if answer is None:
        _log.info("  Dropping mcq %r: answer %r not among options", question[:60], raw.get("answer"))
        return None
    return QuizItem(kind="mcq", question=question, options=options, answer=answer)


def _normalize_timeline(raw) -> list[TimelineItem]:
    if isinstance(raw, dict):
        raw = [raw]
    if not isinstance(raw, list):
        return []
    items = []
    for entry in raw:
        if not isinstance(entry, dict) or not isinstance(entry.get("events"), list):
            continue
        events = []
        for i, ev in enumerate(entry["events"]):
            if not isinstance(ev, dict):
                continue
            try:
                order = int(ev.get("order", i + 1))
            except (TypeError, ValueError):
                order = i + 1
            events.append(TimelineEvent(
                id=_text(ev.get("id")) or f"e{i + 1}",
                label=_text(ev.get("label")),
                order=order,
            ))
        if events:
            items.append(TimelineItem(question=_text(entry.get("question")) or "Arrange correctly", events=events))
    return items


def _normalize_concept_map(raw) -> ConceptMap | None:
    if not isinstance(raw, dict):
        return None
    code = _text(raw.get("mermaid_code"))
    if not code:
        return None
    return ConceptMap(title=_text(raw.get("title")), mermaid_code=code)


def normalize(raw: dict) -> ActivitySet:
    """Build an ActivitySet from a parsed provider payload.

    Invalid mcq items are dropped, never invented.  The one synthesized item
    is the visual mnemonic: a ``visual_concept`` description with no visual
    quiz item becomes one, whose image is generated later by the caller.
    """
    if not isinstance(raw, dict):
        raise ActivityParseError(f"expected a JSON object, got {type(raw).__name__}")

    quiz_raw = raw.get("quiz")
    if quiz_raw is None:
        quiz_raw = []
    elif not isinstance(quiz_raw, list):
        _log.info("  'quiz' is %s, not a list; ignoring", type(quiz_raw).__name__)
        quiz_raw = []
    quiz = [item for item in (_normalize_quiz_item(q) for q in quiz_raw) if item is not None]

    points = raw.get("summary_bullet_points")
    summary_points = [_text(p) for p in points if _text(p)] if isinstance(points, list) else []

    visual_concept = _text(raw.get("visual_concept")) or None
    for item in quiz:
        if item.kind == "visual" and not item.image_prompt:
            item.image_prompt = visual_concept
    kept = [q for q in quiz if q.kind != "visual" or q.image_prompt]
    if len(kept) < len(quiz):
        _log.info("  Dropping %d visual item(s) with no image prompt", len(quiz) - len(kept))
        quiz = kept

    if visual_concept and not any(q.kind == "visual" for q in quiz):
        quiz.append(QuizItem(
            kind="visual",
            question=VISUAL_QUESTION,
            answer=summary_points[0] if summary_points else VISUAL_ANSWER_FALLBACK,
            image_prompt=visual_concept,
        ))

    return ActivitySet(
        quiz=quiz,
        timeline=_normalize_timeline(raw.get("timeline")),
        concept_map=_normalize_concept_map(raw.get("concept_map")),
        short_summary=_text(raw.get("short_summary")) or None,
        summary_points=summary_points,
        visual_concept_prompt=visual_concept,
    )
