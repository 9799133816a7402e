from __future__ import annotations

import os

from study_companion.providers.base import LLMProvider, encode_images


def build_messages(prompt: str, images: list[bytes] | None) -> list[dict]:
    if not images:
        return [{"role": "user", "content": prompt}]
    content: list[dict] = [{"type": "text", "text": prompt}]
    for b64 in encode_images(images):
        content.append({
            "type": "image_url",
            "image_url": {"url": f"data:image/jpeg;base64,{b64}"},
        })
    return [{"role": "user", "content": content}]


class OpenAIProvider(LLMProvider):
    def __init__(self, model: str = "gpt-4o-mini", base_url: str | None = None, api_key: str | None = None):
        import openai
        self.client = openai.AsyncOpenAI(
            api_key=api_key if api_key is not None else os.environ.get("OPENAI_API_KEY", ""),
            base_url=base_url,
        )
        self.model = model

    async def generate(
        self,
        prompt: str,
        images: list[bytes] | None = None,
        temperature: float = 0.7,
        max_tokens: int = 4000,
    ) -> str:
        resp = await self.client.chat.completions.create(
            model=self.model,
            temperature=temperature,
            max_tokens=max_tokens,
            messages=build_messages(prompt, images),
        )
        content = resp.choices[0].message.content if resp.choices else None
        if not content:
            raise RuntimeError(f"No content in {self.name()} response")
        return content

    def name(self) -> str:
        return f"openai/{self.model}"
