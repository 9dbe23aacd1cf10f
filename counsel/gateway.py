from __future__ import annotations

import logging

from counsel.core.conversation_log import ConversationLog
from counsel.core.moderation import Vocabulary
from counsel.core.prompt import SYSTEM_PROMPT
from counsel.errors import ProviderError, ValidationError
from counsel.providers.base import CompletionProvider, CompletionRequest


logger = logging.getLogger("counsel.gateway")


class CompletionGateway:
    """Relays one prompt to the provider and records the moderated exchange.

    The caller gets back the same redacted answer that is persisted.
    """

    def __init__(
        self,
        provider: CompletionProvider,
        vocabulary: Vocabulary,
        log: ConversationLog,
        persona: str = SYSTEM_PROMPT,
        max_output_tokens: int = 300,
    ) -> None:
        self.provider = provider
        self.vocabulary = vocabulary
        self.log = log
        self.persona = persona
        self.max_output_tokens = max_output_tokens

    def handle(self, prompt: str) -> str:
        if not isinstance(prompt, str) or not prompt.strip():
            raise ValidationError("prompt must be a non-empty string")
        prompt = prompt.strip()

        request = CompletionRequest(
            system_persona=self.persona,
            user_prompt=prompt,
            max_output_tokens=self.max_output_tokens,
        )
        logger.info(
            "Completion request: provider=%s prompt_len=%s",
            getattr(self.provider, "name", type(self.provider).__name__),
            len(prompt),
        )
        try:
            answer = self.provider.complete(request)
        except ProviderError:
            logger.exception("Completion provider failed")
            raise
        except Exception as exc:
            logger.exception("Completion provider raised unexpectedly")
            raise ProviderError(str(exc)) from exc

        censored_answer = self.vocabulary.redact(answer)
        censored_prompt = self.vocabulary.redact(prompt)
        record_id = self.log.append(censored_prompt, censored_answer)
        logger.info("Stored conversation id=%s answer_len=%s", record_id, len(censored_answer))
        return censored_answer
