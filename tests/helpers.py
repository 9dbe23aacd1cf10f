"""Test doubles for clocks and completion providers."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import List, Optional

from counsel.providers.base import CompletionRequest


class StepClock:
    """Returns a strictly increasing timestamp on every call."""

    def __init__(self, start: datetime = datetime(2024, 1, 1, tzinfo=timezone.utc), step: float = 1.0):
        self.current = start
        self.step = timedelta(seconds=step)

    def __call__(self) -> datetime:
        value = self.current
        self.current += self.step
        return value


class FrozenClock:
    def __init__(self, value: datetime = datetime(2024, 1, 1, tzinfo=timezone.utc)):
        self.value = value

    def __call__(self) -> datetime:
        return self.value


class FakeProvider:
    name = "fake"

    def __init__(self, answer: str = "Blessed are the meek.", error: Optional[Exception] = None):
        self.answer = answer
        self.error = error
        self.requests: List[CompletionRequest] = []

    def complete(self, request: CompletionRequest) -> str:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return self.answer
