"""Append-only conversation store.

Records are ordered by ``(created_at, id)``. ``id`` comes from the table's
integer primary key sequence, so two records written within the same clock
tick still have a stable order for listing and eviction.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, List, Optional

from sqlalchemy import DateTime, Integer, Text, create_engine, delete, func, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column, sessionmaker

from counsel.errors import StorageError


class Base(DeclarativeBase):
    pass


class ConversationRow(Base):
    __tablename__ = "conversations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    question: Mapped[str] = mapped_column(Text, nullable=False)
    answer: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)


@dataclass(frozen=True)
class ConversationRecord:
    id: int
    question: str
    answer: str
    created_at: datetime


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _to_record(row: ConversationRow) -> ConversationRecord:
    created_at = row.created_at
    # SQLite drops the offset; values are always written in UTC.
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=timezone.utc)
    return ConversationRecord(
        id=row.id,
        question=row.question,
        answer=row.answer,
        created_at=created_at,
    )


def build_engine(database_url: str) -> Engine:
    connect_args = {}
    if database_url.startswith("sqlite"):
        # Request handlers and the retention worker use different threads.
        connect_args["check_same_thread"] = False
    return create_engine(database_url, connect_args=connect_args)


class ConversationLog:
    def __init__(
        self,
        engine: Engine,
        clock: Optional[Callable[[], datetime]] = None,
        create_schema: bool = True,
    ) -> None:
        self._engine = engine
        self._sessions = sessionmaker(bind=engine, expire_on_commit=False)
        self._clock = clock or utcnow
        if create_schema:
            try:
                Base.metadata.create_all(engine)
            except SQLAlchemyError as exc:
                raise StorageError(f"Cannot create conversation schema: {exc}") from exc

    @classmethod
    def from_url(cls, database_url: str, **kwargs) -> "ConversationLog":
        return cls(build_engine(database_url), **kwargs)

    def append(self, question: str, answer: str) -> int:
        created_at = self._clock().astimezone(timezone.utc)
        row = ConversationRow(question=question, answer=answer, created_at=created_at)
        try:
            with self._sessions.begin() as session:
                session.add(row)
                session.flush()
                return row.id
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to append conversation: {exc}") from exc

    def list_recent(self) -> List[ConversationRecord]:
        stmt = select(ConversationRow).order_by(
            ConversationRow.created_at.desc(), ConversationRow.id.desc()
        )
        try:
            with Session(self._engine) as session:
                return [_to_record(row) for row in session.scalars(stmt)]
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to list conversations: {exc}") from exc

    def count(self) -> int:
        try:
            with Session(self._engine) as session:
                return session.scalar(select(func.count()).select_from(ConversationRow)) or 0
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to count conversations: {exc}") from exc

    def delete_oldest(self, n: int) -> int:
        """Delete the ``n`` oldest records and return how many went away."""
        if n <= 0:
            return 0
        oldest = (
            select(ConversationRow.id)
            .order_by(ConversationRow.created_at.asc(), ConversationRow.id.asc())
            .limit(n)
        )
        try:
            with self._sessions.begin() as session:
                ids = list(session.scalars(oldest))
                if not ids:
                    return 0
                result = session.execute(
                    delete(ConversationRow).where(ConversationRow.id.in_(ids))
                )
                return result.rowcount
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to delete old conversations: {exc}") from exc

    def close(self) -> None:
        self._engine.dispose()
