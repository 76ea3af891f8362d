"""
Database models and session management for the Verdica API.

Uses SQLAlchemy with SQLite for the standalone service.
Can be configured for PostgreSQL in production.
"""

from datetime import datetime, UTC
from typing import List

from sqlalchemy import (
    Integer, String, Text, DateTime, ForeignKey, Index, UniqueConstraint,
    create_engine
)
from sqlalchemy.orm import (
    DeclarativeBase, relationship, sessionmaker, Mapped, mapped_column
)

from verdica.config import get_settings
from verdica.models import TrialStatus


# =============================================================================
# Database Setup
# =============================================================================


class Base(DeclarativeBase):
    """Base class for all database models."""
    pass


def get_engine(database_url: str = None):
    """Create database engine."""
    settings = get_settings()
    url = database_url or settings.database_url
    return create_engine(
        url,
        connect_args={"check_same_thread": False} if "sqlite" in url else {},
        echo=settings.debug
    )


engine = get_engine()
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    """Dependency to get database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind=None):
    """Initialize database tables."""
    Base.metadata.create_all(bind=bind or engine)


def _utcnow() -> datetime:
    return datetime.now(UTC)


# =============================================================================
# Database Models
# =============================================================================


class User(Base):
    """A registered user. Prestige is maintained outside the trial engine."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    username: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    prestige: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=_utcnow, nullable=False
    )

    posts: Mapped[List["Post"]] = relationship("Post", back_populates="author")


class Post(Base):
    """
    A user's post.

    Likes and accusations only ever go up. Once accusations catch up
    with likes the post becomes eligible for a trial.
    """

    __tablename__ = "posts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)

    likes: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    accusations: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=_utcnow, index=True, nullable=False
    )

    author: Mapped["User"] = relationship("User", back_populates="posts")


class Trial(Base):
    """A trial opened against a post; the post's author is the accused."""

    __tablename__ = "trials"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)

    # One trial per post
    post_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("posts.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    accused_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False
    )

    status: Mapped[str] = mapped_column(
        String(20), default=TrialStatus.OPEN.value, index=True, nullable=False
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=_utcnow, index=True, nullable=False
    )

    post: Mapped["Post"] = relationship("Post")
    accused: Mapped["User"] = relationship("User")
    judges: Mapped[List["TrialJudge"]] = relationship("TrialJudge", back_populates="trial")
    votes: Mapped[List["TrialVote"]] = relationship("TrialVote", back_populates="trial")


class TrialJudge(Base):
    """A user drawn onto a trial's judge panel."""

    __tablename__ = "trial_judges"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    trial_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("trials.id", ondelete="CASCADE"), index=True, nullable=False
    )
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )

    trial: Mapped["Trial"] = relationship("Trial", back_populates="judges")
    user: Mapped["User"] = relationship("User")

    __table_args__ = (
        UniqueConstraint('trial_id', 'user_id', name='uq_trial_judge'),
    )


class TrialVote(Base):
    """
    A vote cast on a trial.

    Each user holds a single vote per trial; voting again overwrites
    the role and outcome of the existing row.
    """

    __tablename__ = "trial_votes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    trial_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("trials.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False
    )

    role: Mapped[str] = mapped_column(String(20), nullable=False)
    vote: Mapped[str] = mapped_column(String(20), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=_utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=_utcnow, onupdate=_utcnow, nullable=False
    )

    trial: Mapped["Trial"] = relationship("Trial", back_populates="votes")

    __table_args__ = (
        UniqueConstraint('trial_id', 'user_id', name='uq_trial_voter'),
        Index('ix_trial_votes_trial', 'trial_id'),
    )
