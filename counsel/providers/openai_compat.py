from __future__ import annotations

from typing import Any, Dict, List, Optional

import httpx

from counsel.errors import ProviderError
from counsel.providers.base import CompletionRequest


def _build_messages(request: CompletionRequest) -> List[Dict[str, str]]:
    return [
        {"role": "system", "content": request.system_persona},
        {"role": "user", "content": request.user_prompt},
    ]


def _first_choice_text(data: Any) -> str:
    try:
        content = data["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError) as exc:
        raise ProviderError(f"Malformed completion response: {exc!r}") from exc
    if not isinstance(content, str):
        raise ProviderError("Completion response content is not text")
    return content


class OpenAIChatProvider:
    """Chat-completions client for OpenAI and OpenAI-compatible endpoints."""

    name = "openai"

    def __init__(
        self,
        api_key: Optional[str],
        model: str,
        base_url: str = "https://api.openai.com/v1",
        timeout: float = 30.0,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.endpoint = base_url.rstrip("/") + "/chat/completions"
        self.timeout = timeout
        self._client = client

    def complete(self, request: CompletionRequest) -> str:
        if not self.api_key:
            raise ProviderError("OPENAI_API_KEY not configured")

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        payload = {
            "model": self.model,
            "messages": _build_messages(request),
            "max_tokens": request.max_output_tokens,
        }

        try:
            if self._client is not None:
                response = self._client.post(self.endpoint, json=payload, headers=headers)
                response.raise_for_status()
                data = response.json()
            else:
                with httpx.Client(timeout=self.timeout) as client:
                    response = client.post(self.endpoint, json=payload, headers=headers)
                    response.raise_for_status()
                    data = response.json()
        except httpx.HTTPStatusError as exc:
            body = " ".join(exc.response.text.split())[:500]
            raise ProviderError(
                f"Completion API returned {exc.response.status_code}: {body}"
            ) from exc
        except httpx.HTTPError as exc:
            raise ProviderError(f"Completion API call failed: {exc}") from exc
        except ValueError as exc:
            raise ProviderError(f"Completion API returned invalid JSON: {exc}") from exc

        return _first_choice_text(data)
