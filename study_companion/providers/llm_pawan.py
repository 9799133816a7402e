from __future__ import annotations

import os

from study_companion.providers.llm_openai import OpenAIProvider

# Pawan serves each model behind its own OpenAI-compatible endpoint.
PAWAN_MODELS = {
    "cosmosrp-2.5": "https://api.pawan.krd/cosmosrp-2.5/v1",
    "cosmosrp-2.1": "https://api.pawan.krd/cosmosrp-2.1/v1",
    "gpt-oss-20b": "https://api.pawan.krd/gpt-oss-20b/v1",
}


class PawanProvider(OpenAIProvider):
    """Pawan.krd models.  Works without a key on the free tier."""

    def __init__(self, model: str = "cosmosrp-2.5"):
        if model not in PAWAN_MODELS:
            raise ValueError(f"Unknown Pawan model: {model}")
        super().__init__(
            model=model,
            base_url=PAWAN_MODELS[model],
            api_key=os.environ.get("PAWAN_API_KEY", "") or "pawan-free-tier",
        )

    def name(self) -> str:
        return f"pawan/{self.model}"
