from __future__ import annotations

from typing import Optional

from langchain_core.messages import HumanMessage, SystemMessage
from langchain_google_genai import ChatGoogleGenerativeAI

from counsel.errors import ProviderError
from counsel.providers.base import CompletionRequest


class GeminiProvider:
    """Completion provider backed by Google Gemini through LangChain."""

    name = "gemini"

    def __init__(
        self,
        api_key: Optional[str],
        model: str,
        temperature: float = 0.3,
        top_p: float = 0.9,
        timeout: float = 30.0,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.temperature = temperature
        self.top_p = top_p
        self.timeout = timeout

    def _build_llm(self, max_output_tokens: int) -> ChatGoogleGenerativeAI:
        return ChatGoogleGenerativeAI(
            model=self.model,
            google_api_key=self.api_key,
            temperature=self.temperature,
            top_p=self.top_p,
            max_output_tokens=max_output_tokens,
            timeout=self.timeout,
            max_retries=1,
        )

    def complete(self, request: CompletionRequest) -> str:
        if not self.api_key:
            raise ProviderError("GOOGLE_API_KEY not configured")

        messages = [
            SystemMessage(content=request.system_persona),
            HumanMessage(content=request.user_prompt),
        ]
        try:
            result = self._build_llm(request.max_output_tokens).invoke(messages)
        except Exception as exc:
            raise ProviderError(f"Gemini call failed: {exc}") from exc

        content = getattr(result, "content", None)
        if isinstance(content, list):
            content = "".join(
                part if isinstance(part, str) else str(part.get("text", ""))
                for part in content
                if isinstance(part, (str, dict))
            )
        if not isinstance(content, str):
            raise ProviderError("Gemini response carried no text content")
        return content
