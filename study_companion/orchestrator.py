"""Walk the provider chain until one returns a usable activity set."""
from __future__ import annotations

import asyncio
import json
import logging
import re
import time
from typing import TYPE_CHECKING

from study_companion.chain import CATALOG
from study_companion.models import ContentMode
from study_companion.normalizer import normalize
from study_companion.prompts import build_prompt

if TYPE_CHECKING:
    from study_companion.models import ActivitySet, ExtractedContent, ProviderDescriptor, TriggerKind
    from study_companion.providers.base import LLMProvider

_log = logging.getLogger("study_companion.orchestrator")

MAX_TOKENS = 4000


def parse_raw_response(text: str) -> dict | None:
    """Extract the activity JSON object from a raw model reply.

    Strips ``<think>`` blocks and code fences, then tries the whole text,
    the outermost ``{…}`` span, and finally each balanced ``{…}`` block
    (last first, since models tend to draft before the final answer).
    """
    text = re.sub(r"<think>.*?</think>", "", text or "", flags=re.DOTALL)
    text = re.sub(r"```(?:json)?", "", text).strip()

    candidates = [text]
    first, last = text.find("{"), text.rfind("}")
    if first >= 0 and last > first:
        candidates.append(text[first : last + 1])
    candidates.extend(reversed(_find_json_objects(text)))

    for candidate in candidates:
        try:
            data = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(data, dict):
            return data
    return None


def _find_json_objects(text: str) -> list[str]:
    """Find balanced top-level ``{…}`` substrings in *text*."""
    results: list[str] = []
    i = 0
    while i < len(text):
        if text[i] != "{":
            i += 1
            continue
        depth = 0
        in_str = False
        escape = False
        for j in range(i, len(text)):
            ch = text[j]
            if escape:
                escape = False
                continue
            if ch == "\\":
                escape = True
                continue
            if ch == '"':
                in_str = not in_str
                continue
            if in_str:
                continue
            if ch == "{":
                depth += 1
            elif ch == "}":
                depth -= 1
                if depth == 0:
                    results.append(text[i : j + 1])
                    i = j + 1
                    break
        else:
            # Unbalanced, skip this opening brace
            i += 1
    return results


def shape_images(images: list[bytes], descriptor: ProviderDescriptor) -> list[bytes]:
    """Keep the most recent pages when a provider caps the image count."""
    limit = descriptor.max_images_per_request
    if 0 < limit < len(images):
        _log.info("  %s accepts %d images, dropping the %d oldest",
                  descriptor.id, limit, len(images) - limit)
        return images[-limit:]
    return images


async def _attempt(
    provider: LLMProvider,
    descriptor: ProviderDescriptor,
    content: ExtractedContent,
    trigger_kind: TriggerKind,
) -> ActivitySet:
    if content.mode == ContentMode.VISION:
        prompt = build_prompt(content.mode, trigger_kind)
        images = shape_images(list(content.payload or []), descriptor)
    else:
        prompt = build_prompt(content.mode, trigger_kind, text=content.payload)
        images = None

    response = await asyncio.wait_for(
        provider.generate(
            prompt,
            images=images,
            temperature=descriptor.recommended_temperature,
            max_tokens=MAX_TOKENS,
        ),
        timeout=descriptor.request_timeout_ms / 1000,
    )
    data = parse_raw_response(response)
    if data is None:
        _log.debug("  Raw response: %.300s", response)
        raise ValueError("response did not contain a JSON object")
    return normalize(data)


async def generate_activities(
    content: ExtractedContent,
    trigger_kind: TriggerKind,
    chain: list[str],
    providers: dict[str, LLMProvider],
    catalog: dict[str, ProviderDescriptor] | None = None,
) -> ActivitySet | None:
    """Try each provider of *chain* in order and return the first activity set.

    Providers are called one at a time.  A provider that cannot take page
    images is skipped without a call; every other failure (missing
    provider, timeout, HTTP error, unparseable output) is logged and the
    next provider is tried.  Returns None when the chain is exhausted.
    """
    catalog = catalog if catalog is not None else CATALOG
    if content.mode == ContentMode.ERROR:
        _log.info("No extracted content, skipping generation")
        return None

    n_images = len(content.payload or []) if content.mode == ContentMode.VISION else 0
    for position, provider_id in enumerate(chain, 1):
        descriptor = catalog.get(provider_id)
        if descriptor is not None and content.mode == ContentMode.VISION and not descriptor.supports_vision:
            _log.info("[%d/%d] Skipping %s: no vision support", position, len(chain), provider_id)
            continue

        provider = providers.get(provider_id)
        if descriptor is None or provider is None:
            _log.warning("[%d/%d] Provider %s failed: not configured",
                         position, len(chain), provider_id)
            continue

        _log.info("[%d/%d] Generating %s activities with %s (%s, %d images)",
                  position, len(chain), trigger_kind.value, provider.name(),
                  content.mode.value, n_images)
        t0 = time.monotonic()
        try:
            result = await _attempt(provider, descriptor, content, trigger_kind)
        except asyncio.TimeoutError:
            _log.warning("[%d/%d] Provider %s failed: timed out after %.0fs",
                         position, len(chain), provider_id, descriptor.request_timeout_ms / 1000)
            continue
        except Exception as e:
            _log.warning("[%d/%d] Provider %s failed: %s", position, len(chain), provider_id, e)
            continue

        _log.info("  OK in %.1fs: %d quiz items, %d timelines",
                  time.monotonic() - t0, len(result.quiz), len(result.timeline))
        return result

    _log.info("All %d providers failed", len(chain))
    return None
