"""Claude API backend for the kitchen assistant."""

from __future__ import annotations

from .assistant import KitchenAssistant


class ClaudeAssistant(KitchenAssistant):
    """Kitchen assistant using Anthropic's Claude models."""

    name = "claude"

    def __init__(
        self, api_key: str = "", model: str = "claude-sonnet-4-5-20250929", **kwargs
    ) -> None:
        super().__init__(api_key=api_key, model=model, **kwargs)

    async def _complete(
        self,
        system: str,
        prompt: str,
        images: list[str] | None = None,
        temperature: float = 0.1,
    ) -> str:
        if not self._api_key:
            raise ValueError(
                "Anthropic API key is not set. "
                "Check the config file or the ANTHROPIC_API_KEY environment variable."
            )

        try:
            import anthropic
        except ImportError:
            raise ImportError(
                "anthropic SDK is required: pip install anthropic"
            ) from None

        content: list[dict] = []
        for data in images or []:
            content.append(
                {
                    "type": "image",
                    "source": {
                        "type": "base64",
                        "media_type": "image/jpeg",
                        "data": data,
                    },
                }
            )
        content.append({"type": "text", "text": prompt})

        client = anthropic.AsyncAnthropic(api_key=self._api_key)
        response = await client.messages.create(
            model=self._model,
            max_tokens=2048,
            system=system,
            temperature=temperature,
            messages=[{"role": "user", "content": content}],
        )
        return response.content[0].text
