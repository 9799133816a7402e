from __future__ import annotations

import base64
from abc import ABC, abstractmethod


class LLMProvider(ABC):
    @abstractmethod
    async def generate(
        self,
        prompt: str,
        images: list[bytes] | None = None,
        temperature: float = 0.7,
        max_tokens: int = 4000,
    ) -> str:
        ...

    @abstractmethod
    def name(self) -> str:
        ...


def encode_images(images: list[bytes] | None) -> list[str]:
    """Base64 JPEG payloads without a ``data:`` prefix."""
    return [base64.b64encode(img).decode("ascii") for img in images or []]
