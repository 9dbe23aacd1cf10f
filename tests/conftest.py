"""Shared fixtures: temp SQLite logs, vocabularies, settings and providers."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from config.settings import Settings
from counsel.core.conversation_log import ConversationLog
from counsel.core.moderation import Vocabulary
from counsel.errors import ProviderError
from tests.helpers import FakeProvider, StepClock


@pytest.fixture
def db_url(tmp_path: Path) -> str:
    return f"sqlite:///{tmp_path / 'conversations.db'}"


@pytest.fixture
def clock() -> StepClock:
    return StepClock()


@pytest.fixture
def conversation_log(db_url: str, clock: StepClock):
    log = ConversationLog.from_url(db_url, clock=clock)
    yield log
    log.close()


@pytest.fixture
def vocabulary() -> Vocabulary:
    return Vocabulary(["damn", "hell"])


@pytest.fixture
def vocabulary_file(tmp_path: Path) -> Path:
    path = tmp_path / "bad_words.json"
    path.write_text(json.dumps(["damn", "hell"]), encoding="utf-8")
    return path


@pytest.fixture
def settings(db_url: str, vocabulary_file: Path) -> Settings:
    return Settings(
        database_url=db_url,
        vocabulary_path=str(vocabulary_file),
        retention_enabled=False,
        retention_max_records=10,
        completion_provider="openai",
        openai_api_key="test-key",
    )


@pytest.fixture
def fake_provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def failing_provider() -> FakeProvider:
    return FakeProvider(error=ProviderError("upstream said 503: secret internals"))
