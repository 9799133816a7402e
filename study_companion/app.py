"""FastAPI application exposing checkpoints and activity generation."""
from __future__ import annotations

import logging
import time
import uuid
from pathlib import Path

logging.basicConfig(level=logging.INFO, format="%(name)s | %(message)s")

from fastapi import FastAPI, HTTPException, Request

from study_companion.chain import CATALOG
from study_companion.config import DEFAULTS, Settings, load_settings, save_settings
from study_companion.documents import PdfDocument
from study_companion.extractor import is_scan_like
from study_companion.images import ImageGenerator, spawn_image_generation
from study_companion.models import TriggerKind
from study_companion.pipeline import GENERIC_FAILURE, run_checkpoint
from study_companion.providers.registry import create_providers
from study_companion.scheduler import decide, should_display

log = logging.getLogger("study_companion.app")

app = FastAPI(title="Study Companion")

# Global state (initialized on startup)
_settings: Settings | None = None
_gallery: dict[str, dict] = {}  # image_id -> {prompt, url, status, ...}
_scan_cache: dict[str, bool] = {}  # document path -> scan-like

# Both dicts keep insertion order; the oldest entries go first past the cap
MAX_GALLERY = 200
MAX_SCAN_CACHE = 100


def _evict_oldest(store: dict, cap: int) -> None:
    while len(store) > cap:
        del store[next(iter(store))]


def get_settings() -> Settings:
    assert _settings is not None
    return _settings


def _get_providers():
    return create_providers(list(CATALOG), get_settings())


def _get_image_generator() -> ImageGenerator:
    return ImageGenerator(provider=get_settings().image_gen_provider)


@app.on_event("startup")
async def startup():
    global _settings
    if _settings is not None:
        return  # Already initialized (e.g. by tests)
    _settings = load_settings()


# ── API: Checkpoints ──────────────────────────────────────────────────────

@app.get("/api/checkpoint")
async def api_checkpoint(page: int = 0, total: int = 0):
    state = decide(page, total)
    return {
        "show": state.show,
        "kind": state.kind.value if state.kind else None,
        "display": should_display(state, get_settings()),
    }


# ── API: Activity generation ──────────────────────────────────────────────

def _record_image(image_id: str):
    def on_done(url: str | None, status: str) -> None:
        entry = _gallery.get(image_id)
        if entry is not None:
            _gallery[image_id] = {**entry, "url": url, "status": status}
    return on_done


@app.post("/api/activities")
async def api_activities(request: Request):
    body = await request.json()
    path = Path(body.get("path", ""))
    page = body.get("page")
    if not path.is_file():
        raise HTTPException(404, "Document not found")
    if not isinstance(page, int) or page < 1:
        raise HTTPException(400, "page must be a positive integer")
    try:
        kind = TriggerKind(body.get("trigger_kind", TriggerKind.PERIODIC.value))
    except ValueError:
        raise HTTPException(400, "trigger_kind must be 'periodic' or 'section_end'")

    s = get_settings()
    try:
        document = PdfDocument(path)
    except Exception as e:
        log.warning("Could not open %s: %s", path, e)
        raise HTTPException(400, "Could not open document")

    key = str(path.resolve())
    if key not in _scan_cache:
        _scan_cache[key] = await is_scan_like(document, min_chars=s.scan_char_threshold)
        _evict_oldest(_scan_cache, MAX_SCAN_CACHE)
    scan_like = _scan_cache[key]

    result = await run_checkpoint(
        document, min(page, document.page_count), kind, s, _get_providers(),
        is_scan_like=scan_like,
    )
    if result is None:
        raise HTTPException(502, GENERIC_FAILURE)

    image_id = None
    visual = result.visual_item()
    generator = _get_image_generator()
    if visual is not None and visual.image_prompt and generator.enabled:
        image_id = uuid.uuid4().hex
        _gallery[image_id] = {
            "id": image_id,
            "document": key,
            "prompt": visual.image_prompt,
            "timestamp": time.time(),
            "url": None,
            "status": "pending",
        }
        _evict_oldest(_gallery, MAX_GALLERY)
        spawn_image_generation(result, generator, _record_image(image_id))

    return {"activities": result.to_dict(), "image_id": image_id}


@app.get("/api/gallery")
async def api_gallery():
    return sorted(_gallery.values(), key=lambda e: e["timestamp"], reverse=True)


@app.get("/api/gallery/{image_id}")
async def api_gallery_item(image_id: str):
    if image_id not in _gallery:
        raise HTTPException(404, "Image not found")
    return _gallery[image_id]


# ── API: Settings ─────────────────────────────────────────────────────────

@app.get("/api/settings")
async def api_get_settings():
    return get_settings().to_dict()


def _matches_default_type(key: str, value) -> bool:
    default = DEFAULTS[key]
    if isinstance(default, bool) or isinstance(value, bool):
        return isinstance(default, bool) and isinstance(value, bool)
    if isinstance(default, float):
        return isinstance(value, (int, float))
    return isinstance(value, type(default))


@app.put("/api/settings")
async def api_update_settings(request: Request):
    body = await request.json()
    s = get_settings()
    known = {f.name for f in Settings.__dataclass_fields__.values()}
    updates = {k: v for k, v in body.items() if k in known}
    for k, v in updates.items():
        if not _matches_default_type(k, v):
            raise HTTPException(400, f"{k} must be of type {type(DEFAULTS[k]).__name__}")
    for k, v in updates.items():
        setattr(s, k, v)
    save_settings(s)
    return s.to_dict()
