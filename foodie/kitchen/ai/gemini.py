"""Gemini API backend for the kitchen assistant."""

from __future__ import annotations

import base64

from .assistant import KitchenAssistant


class GeminiAssistant(KitchenAssistant):
    """Kitchen assistant using Google Gemini models."""

    name = "gemini"

    def __init__(
        self, api_key: str = "", model: str = "gemini-2.0-flash", **kwargs
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
                "Gemini API key is not set. "
                "Check the config file or the GEMINI_API_KEY environment variable."
            )

        try:
            import google.generativeai as genai
        except ImportError:
            raise ImportError(
                "google-generativeai SDK is required: pip install google-generativeai"
            ) from None

        genai.configure(api_key=self._api_key)
        model = genai.GenerativeModel(self._model, system_instruction=system)

        parts: list = []
        for data in images or []:
            parts.append({"mime_type": "image/jpeg", "data": base64.b64decode(data)})
        parts.append(prompt)

        response = await model.generate_content_async(
            parts, generation_config={"temperature": temperature}
        )
        return response.text
