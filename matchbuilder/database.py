"""Database models and helpers for rosters, sessions, and scheduled matches."""

from __future__ import annotations

import logging
import os
import uuid
from datetime import datetime, timezone
from typing import Iterator

from sqlalchemy import JSON, Column
from sqlalchemy.engine import Engine
from sqlmodel import Field, Session, SQLModel, create_engine, select

from .scheduler import MatchCard
from .scheduler import Player as PlayerPayload

DEFAULT_SQLITE_PATH = "sqlite:///./match_builder.db"

logger = logging.getLogger(__name__)


def _build_engine_url() -> str:
    """Return the configured database URL or fall back to SQLite."""
    return os.environ.get("DATABASE_URL", DEFAULT_SQLITE_PATH)


def _build_engine() -> Engine:
    url = _build_engine_url()
    engine_kwargs = {}
    if url.startswith("sqlite"):
        # Other drivers reject check_same_thread.
        engine_kwargs["connect_args"] = {"check_same_thread": False}
    return create_engine(url, **engine_kwargs)


engine = _build_engine()


def _new_id() -> str:
    return uuid.uuid4().hex


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Player(SQLModel, table=True):
    id: str = Field(default_factory=_new_id, primary_key=True, max_length=64)
    name: str = Field(index=True, min_length=1, max_length=128, nullable=False, unique=True)
    color: str | None = Field(default=None, max_length=16)
    gender: str = Field(default="", max_length=16, nullable=False)
    created_at: datetime = Field(default_factory=_utcnow, nullable=False)

    def to_payload(self) -> PlayerPayload:
        return PlayerPayload(id=self.id, name=self.name, color=self.color, gender=self.gender)


class MatchSession(SQLModel, table=True):
    id: int | None = Field(default=None, primary_key=True)
    rounds: int = Field(nullable=False)
    courts: int = Field(nullable=False)
    seed: int | None = Field(default=None)
    players: list[dict] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    court_numbers: list[int] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    created_at: datetime = Field(default_factory=_utcnow, nullable=False)


class ScheduledMatch(SQLModel, table=True):
    id: int | None = Field(default=None, primary_key=True)
    card_id: str = Field(nullable=False, index=True, max_length=64)
    session_id: int = Field(foreign_key="matchsession.id", nullable=False, index=True)
    order_index: int = Field(nullable=False, index=True)
    round_number: int = Field(nullable=False)
    team_a_one: str = Field(nullable=False, max_length=64)
    team_a_two: str = Field(nullable=False, max_length=64)
    team_b_one: str = Field(nullable=False, max_length=64)
    team_b_two: str = Field(nullable=False, max_length=64)
    winner: str | None = Field(default=None, max_length=1)
    created_at: datetime = Field(default_factory=_utcnow, nullable=False)

    @classmethod
    def from_card(cls, session_id: int, card: MatchCard) -> "ScheduledMatch":
        return cls(
            card_id=card["id"],
            session_id=session_id,
            order_index=card["index"],
            round_number=card["round"],
            team_a_one=card["team_a"][0],
            team_a_two=card["team_a"][1],
            team_b_one=card["team_b"][0],
            team_b_two=card["team_b"][1],
        )

    def to_card(self) -> MatchCard:
        return MatchCard(
            id=self.card_id,
            index=self.order_index,
            round=self.round_number,
            team_a=(self.team_a_one, self.team_a_two),
            team_b=(self.team_b_one, self.team_b_two),
        )


def init_db() -> None:
    """Create tables if they don't already exist."""
    SQLModel.metadata.create_all(engine)
    logger.info("Database ready at %s", engine.url.render_as_string(hide_password=True))


def get_session() -> Iterator[Session]:
    """Yield a SQLModel session for dependency injection."""
    with Session(engine) as session:
        yield session


def fetch_roster(session: Session) -> list[Player]:
    return list(session.exec(select(Player).order_by(Player.created_at, Player.name)).all())


def fetch_session_matches(session: Session, session_id: int) -> list[ScheduledMatch]:
    return list(
        session.exec(
            select(ScheduledMatch)
            .where(ScheduledMatch.session_id == session_id)
            .order_by(ScheduledMatch.order_index)
        ).all()
    )


def fetch_match_sessions(session: Session) -> list[MatchSession]:
    return list(
        session.exec(
            select(MatchSession).order_by(MatchSession.created_at.desc(), MatchSession.id.desc())
        ).all()
    )
