from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class CompletionRequest:
    system_persona: str
    user_prompt: str
    max_output_tokens: int


class CompletionProvider(Protocol):
    """Anything that turns a persona + prompt into answer text.

    Implementations raise ``ProviderError`` for every failure mode so the
    gateway never has to know about transport or SDK exceptions.
    """

    name: str

    def complete(self, request: CompletionRequest) -> str:
        ...
