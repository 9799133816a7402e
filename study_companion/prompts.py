"""Prompt templates for activity generation."""
from __future__ import annotations

from study_companion.models import ContentMode, TriggerKind

JSON_INSTRUCTION = """\
Return ONLY valid JSON. No markdown, no commentary.
Structure:
{
  "quiz": [
    {
      "type": "mcq",
      "question": "Question text",
      "options": ["A", "B", "C", "D"],
      "answer": "Correct option, copied exactly from options"
    }
  ],
  "timeline": [
    {
      "type": "timeline",
      "question": "Arrange these events in order",
      "events": [
        {"id": "e1", "label": "Event A", "order": 1},
        {"id": "e2", "label": "Event B", "order": 2}
      ]
    }
  ],
  "concept_map": {
    "type": "concept_map",
    "title": "Main Topic",
    "mermaid_code": "graph TD; A[\\"Node A\\"] -->|Label| B[\\"Node B\\"];"
  },
  "summary_bullet_points": ["Point 1", "Point 2"],
  "short_summary": "A concise 2-3 sentence summary of the key concepts.",
  "visual_concept": "Description of a visual scene representing the key concept."
}
Mermaid rules: use 'graph TD', put ALL node texts in double quotes, no brackets \
or braces inside the quotes, keep it small.
Omit "timeline" if the material has no meaningful sequence of events.
"""

SECTION_END_FRAMING = (
    "You are an expert examiner. The reader has just finished a chapter. "
    "Create a comprehensive review of the material below."
)

EXCERPT_FRAMING = (
    "You are a patient tutor. The reader has just read the excerpt below. "
    "Analyze it and build a short study activity set."
)

VISION_FRAMING = (
    "You are an expert tutor. Analyze these textbook page images, read in order. "
    "Extract the key concepts and create a study activity set."
)

SECTION_END_VISION_FRAMING = (
    "You are an expert examiner. These are the last pages of a chapter, in order. "
    "Create a comprehensive review of the concepts they cover."
)


def build_prompt(mode: ContentMode, trigger_kind: TriggerKind, text: str | None = None) -> str:
    """Framing + JSON contract, followed by the excerpt for text content.

    Page images travel separately through the provider transport.
    """
    if mode == ContentMode.VISION:
        framing = SECTION_END_VISION_FRAMING if trigger_kind == TriggerKind.SECTION_END else VISION_FRAMING
        return f"{framing}\n\n{JSON_INSTRUCTION}"

    framing = SECTION_END_FRAMING if trigger_kind == TriggerKind.SECTION_END else EXCERPT_FRAMING
    return f"{framing}\n\n{JSON_INSTRUCTION}\nMaterial:\n\"\"\"\n{text or ''}\n\"\"\""
