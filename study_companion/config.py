from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path

from study_companion.models import ContextLimits

CONFIG_PATH = Path(__file__).resolve().parent.parent / "config.json"

DEFAULTS = {
    "preferred_provider": "gemini",
    "vision_provider": "gemini",
    "enable_fallback": True,
    "scanned_context_limit": 3,
    "text_context_limit": 5,
    "chapter_context_limit": 15,
    "scan_char_threshold": 50,
    "vision_page_window": 3,
    "render_scale": 1.5,
    "manual_chapter_mode": False,
    "enable_periodic_checkpoints": True,
    "enable_ai_features": True,
    "enable_pdf_scanning": True,
    "image_gen_provider": "freepik",
    "gemini_model": "gemini-2.5-flash",
    "openai_model": "gpt-4o-mini",
    "anthropic_model": "claude-sonnet-4-20250514",
    "ollama_model": "qwen3:8b",
    "ollama_url": "http://localhost:11434",
}


@dataclass
class Settings:
    preferred_provider: str = DEFAULTS["preferred_provider"]
    vision_provider: str = DEFAULTS["vision_provider"]
    enable_fallback: bool = DEFAULTS["enable_fallback"]
    scanned_context_limit: int = DEFAULTS["scanned_context_limit"]
    text_context_limit: int = DEFAULTS["text_context_limit"]
    chapter_context_limit: int = DEFAULTS["chapter_context_limit"]
    scan_char_threshold: int = DEFAULTS["scan_char_threshold"]
    vision_page_window: int = DEFAULTS["vision_page_window"]
    render_scale: float = DEFAULTS["render_scale"]
    manual_chapter_mode: bool = DEFAULTS["manual_chapter_mode"]
    enable_periodic_checkpoints: bool = DEFAULTS["enable_periodic_checkpoints"]
    enable_ai_features: bool = DEFAULTS["enable_ai_features"]
    enable_pdf_scanning: bool = DEFAULTS["enable_pdf_scanning"]
    image_gen_provider: str = DEFAULTS["image_gen_provider"]  # freepik | none
    gemini_model: str = DEFAULTS["gemini_model"]
    openai_model: str = DEFAULTS["openai_model"]
    anthropic_model: str = DEFAULTS["anthropic_model"]
    ollama_model: str = DEFAULTS["ollama_model"]
    ollama_url: str = DEFAULTS["ollama_url"]

    @property
    def project_root(self) -> Path:
        return Path(__file__).resolve().parent.parent

    def context_limits(self) -> ContextLimits:
        return ContextLimits(
            section_limit=self.chapter_context_limit,
            scan_limit=self.scanned_context_limit,
            text_limit=self.text_context_limit,
        )

    def to_dict(self) -> dict:
        return {name: getattr(self, name) for name in DEFAULTS}


def load_settings() -> Settings:
    if CONFIG_PATH.exists():
        raw = json.loads(CONFIG_PATH.read_text())
        known = {f.name for f in Settings.__dataclass_fields__.values()}
        filtered = {k: v for k, v in raw.items() if k in known}
        return Settings(**filtered)
    return Settings()


def save_settings(settings: Settings) -> None:
    CONFIG_PATH.write_text(json.dumps(settings.to_dict(), indent=4) + "\n")
