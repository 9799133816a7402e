"""Provider catalog and fallback-chain construction."""
from __future__ import annotations

from study_companion.models import ContentMode, ProviderDescriptor

CATALOG: dict[str, ProviderDescriptor] = {
    d.id: d
    for d in (
        ProviderDescriptor("gemini", supports_vision=True, max_images_per_request=16,
                           recommended_temperature=0.7),
        # Pawan vision models reject payloads with more than two page images.
        ProviderDescriptor("cosmosrp-2.5", supports_vision=True, max_images_per_request=2,
                           recommended_temperature=0.7),
        ProviderDescriptor("cosmosrp-2.1", supports_vision=True, max_images_per_request=2,
                           recommended_temperature=1.2),
        ProviderDescriptor("gpt-oss-20b", supports_vision=False, max_images_per_request=0,
                           recommended_temperature=0.8),
        ProviderDescriptor("openai", supports_vision=True, max_images_per_request=10,
                           recommended_temperature=0.7),
        ProviderDescriptor("anthropic", supports_vision=True, max_images_per_request=20,
                           recommended_temperature=0.7),
        ProviderDescriptor("ollama", supports_vision=False, max_images_per_request=0,
                           recommended_temperature=0.7, request_timeout_ms=180_000),
    )
}

FALLBACK_ORDER = (
    "gemini",
    "cosmosrp-2.5",
    "cosmosrp-2.1",
    "gpt-oss-20b",
    "openai",
    "anthropic",
    "ollama",
)


def build_chain(
    preference: str,
    mode: ContentMode,
    fallback_enabled: bool,
    vision_preference: str | None = None,
    catalog: dict[str, ProviderDescriptor] | None = None,
) -> list[str]:
    """Return the ordered provider ids to try for one request.

    The preferred provider always comes first, even when it cannot handle the
    content; the orchestrator skips it.  With fallback enabled the rest of the
    catalog follows, vision-capable providers only for page images.
    """
    catalog = catalog if catalog is not None else CATALOG
    primary = vision_preference if mode == ContentMode.VISION and vision_preference else preference
    chain = [primary]
    if not fallback_enabled:
        return chain

    order = [pid for pid in FALLBACK_ORDER if pid in catalog]
    order += [pid for pid in catalog if pid not in order]
    for pid in order:
        if pid in chain:
            continue
        if mode == ContentMode.VISION and not catalog[pid].supports_vision:
            continue
        chain.append(pid)
    return chain
