from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from enum import Enum


class TriggerKind(str, Enum):
    PERIODIC = "periodic"
    SECTION_END = "section_end"


class ContentMode(str, Enum):
    TEXT = "text"
    VISION = "vision"
    ERROR = "error"


@dataclass(frozen=True)
class TriggerState:
    show: bool = False
    kind: TriggerKind | None = None


@dataclass(frozen=True)
class ContextLimits:
    section_limit: int = 15
    scan_limit: int = 3
    text_limit: int = 5


@dataclass(frozen=True)
class ExtractionRequest:
    start_page: int
    end_page: int
    trigger_kind: TriggerKind


@dataclass(frozen=True)
class ExtractedContent:
    mode: ContentMode
    payload: str | list[bytes] | None = None  # text, or JPEG pages oldest first

    @classmethod
    def error(cls) -> ExtractedContent:
        return cls(ContentMode.ERROR, None)


@dataclass(frozen=True)
class ProviderDescriptor:
    id: str
    supports_vision: bool
    max_images_per_request: int
    recommended_temperature: float
    request_timeout_ms: int = 120_000


@dataclass
class QuizItem:
    kind: str  # mcq | visual
    question: str
    options: list[str] = field(default_factory=list)
    answer: str = ""
    image_prompt: str | None = None
    image_url: str | None = None


@dataclass
class TimelineEvent:
    id: str
    label: str
    order: int


@dataclass
class TimelineItem:
    question: str
    events: list[TimelineEvent]


@dataclass
class ConceptMap:
    title: str
    mermaid_code: str


@dataclass
class ActivitySet:
    quiz: list[QuizItem] = field(default_factory=list)
    timeline: list[TimelineItem] = field(default_factory=list)
    concept_map: ConceptMap | None = None
    short_summary: str | None = None
    summary_points: list[str] = field(default_factory=list)
    visual_concept_prompt: str | None = None

    def visual_item(self) -> QuizItem | None:
        return next((q for q in self.quiz if q.kind == "visual"), None)

    def with_image_url(self, url: str | None) -> ActivitySet:
        """Return a copy whose visual quiz item carries *url*.

        The quiz list and the visual item are replaced, never edited, so a
        caller holding the original set keeps seeing the original items.
        """
        quiz = [
            dataclasses.replace(q, image_url=url) if q.kind == "visual" else q
            for q in self.quiz
        ]
        return dataclasses.replace(self, quiz=quiz)

    def to_dict(self) -> dict:
        return dataclasses.asdict(self)
