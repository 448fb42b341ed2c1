"""
SQLAlchemy Database Models

Tables:
- terms: Vocabulary entries (the learnable payload)
- progress: SM-2 scheduling state, one row per term
- review_history: Append-only log of graded reviews
- profile: Singleton learner profile (cumulative XP, AI preferences)

ARCHITECTURE NOTE:
    This file contains SQLALCHEMY models for database persistence.
    There is a corresponding Pydantic file: neurolex/models/learning.py

    Data flows: Service Layer → Pydantic → SQLAlchemy → Database

All timestamps are epoch milliseconds stored as BIGINT, so that due times
keep their local 04:00 normalization regardless of database backend.
"""

import time
import uuid
from typing import List, Optional

from sqlalchemy import BigInteger, Boolean, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from neurolex.db.base import Base


def _now_ms() -> int:
    """Return current time as epoch milliseconds."""
    return int(time.time() * 1000)


def _new_id() -> str:
    return str(uuid.uuid4())


PROFILE_ID = 1


class Term(Base):
    """
    A vocabulary entry.

    Attributes:
        id: UUID string primary key.
        content: The word or phrase being learned.
        definition: Meaning of the term.
        context: Optional example sentence or notes.
        created_at: Creation time (epoch ms).
        progress: Scheduling state (one-to-one, deleted with the term).
    """

    __tablename__ = "terms"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    content: Mapped[str] = mapped_column(String(255), index=True)
    definition: Mapped[str] = mapped_column(Text, default="")
    context: Mapped[Optional[str]] = mapped_column(Text)
    created_at: Mapped[int] = mapped_column(BigInteger, default=_now_ms)

    progress: Mapped[Optional["Progress"]] = relationship(
        back_populates="term",
        cascade="all, delete-orphan",
        passive_deletes=True,
        uselist=False,
        lazy="selectin",
    )


class Progress(Base):
    """
    SM-2 scheduling state for one term.

    Attributes:
        term_id: Primary key and foreign key to terms.id.
        next_review_at: When the term becomes due (epoch ms).
        interval: Days until next review.
        repetition: Consecutive successful reviews.
        efactor: Easiness factor (>= 1.3).
        history: Ordered review history (append-only).
    """

    __tablename__ = "progress"

    term_id: Mapped[str] = mapped_column(
        ForeignKey("terms.id", ondelete="CASCADE"), primary_key=True
    )
    next_review_at: Mapped[int] = mapped_column(BigInteger, index=True, default=_now_ms)
    interval: Mapped[int] = mapped_column(Integer, default=0)
    repetition: Mapped[int] = mapped_column(Integer, default=0)
    efactor: Mapped[float] = mapped_column(Float, default=2.5)

    term: Mapped["Term"] = relationship(back_populates="progress", lazy="joined")
    history: Mapped[List["ReviewHistory"]] = relationship(
        back_populates="progress",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="ReviewHistory.id",
        lazy="selectin",
    )


class ReviewHistory(Base):
    """
    One graded review of a term.

    Rows are only ever inserted; never updated or reordered.
    """

    __tablename__ = "review_history"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    term_id: Mapped[str] = mapped_column(
        ForeignKey("progress.term_id", ondelete="CASCADE"), index=True
    )
    timestamp: Mapped[int] = mapped_column(BigInteger, default=_now_ms)
    grade: Mapped[int] = mapped_column(Integer)

    progress: Mapped["Progress"] = relationship(back_populates="history")


class Profile(Base):
    """
    Singleton learner profile (id is always PROFILE_ID).

    Holds cumulative XP and the AI preferences used by study sessions.
    """

    __tablename__ = "profile"

    id: Mapped[int] = mapped_column(primary_key=True, default=PROFILE_ID)
    xp: Mapped[int] = mapped_column(Integer, default=0)
    ai_enabled: Mapped[bool] = mapped_column(Boolean, default=True)
    model: Mapped[Optional[str]] = mapped_column(String(100))
    language: Mapped[str] = mapped_column(String(20), default="en-US")
    preferred_quiz_type: Mapped[str] = mapped_column(String(30), default="auto")
