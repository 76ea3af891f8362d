"""
Record store over the Verdica database.

The trial, voting and tally services only talk to the database through
this gateway. Every write commits immediately; there is no transaction
spanning several calls. SQLAlchemy failures are rolled back and raised
as PersistenceError, uniqueness violations as ConflictError.
"""

import logging
from contextlib import contextmanager
from typing import Iterable, List, NamedTuple, Optional

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from verdica.database import User, Post, Trial, TrialJudge, TrialVote
from verdica.errors import ConflictError, NotFoundError, PersistenceError
from verdica.models import TrialStatus


logger = logging.getLogger(__name__)

POST_COUNTERS = ("likes", "accusations")


class PostCounters(NamedTuple):
    """Snapshot of a post as far as trial eligibility is concerned."""
    id: int
    user_id: int
    likes: int
    accusations: int


class RecordStore:
    """CRUD gateway for users, posts, trials, trial_judges and trial_votes."""

    def __init__(self, db: Session):
        self.db = db

    @contextmanager
    def _guard(self, action: str):
        try:
            yield
        except IntegrityError as e:
            self.db.rollback()
            logger.warning(f"Conflict while trying to {action}: {e.orig}")
            raise ConflictError(f"Could not {action}: {e.orig}") from e
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception(f"Database error while trying to {action}")
            raise PersistenceError(str(e)) from e

    # =========================================================================
    # Users
    # =========================================================================

    def list_users(self) -> List[User]:
        with self._guard("list users"):
            return self.db.query(User).order_by(User.id).all()

    def get_user(self, user_id: int) -> Optional[User]:
        with self._guard("load user"):
            return self.db.query(User).filter(User.id == user_id).first()

    def create_user(self, username: str) -> User:
        with self._guard("create user"):
            user = User(username=username)
            self.db.add(user)
            self.db.commit()
            self.db.refresh(user)
            return user

    # =========================================================================
    # Posts
    # =========================================================================

    def list_posts(self) -> List[Post]:
        """All posts, newest first."""
        with self._guard("list posts"):
            return self.db.query(Post).order_by(
                Post.created_at.desc(), Post.id.desc()
            ).all()

    def list_post_counters(self) -> List[PostCounters]:
        """Id, author and counters of every post, detached from the session."""
        with self._guard("list posts"):
            return [
                PostCounters(p.id, p.user_id, p.likes, p.accusations)
                for p in self.db.query(Post).order_by(Post.id).all()
            ]

    def get_post(self, post_id: int) -> Optional[Post]:
        with self._guard("load post"):
            return self.db.query(Post).filter(Post.id == post_id).first()

    def create_post(self, user_id: int, content: str) -> Post:
        if self.get_user(user_id) is None:
            raise NotFoundError("User not found")

        with self._guard("create post"):
            post = Post(user_id=user_id, content=content)
            self.db.add(post)
            self.db.commit()
            self.db.refresh(post)
            return post

    def increment_post_counter(self, post_id: int, counter: str) -> Post:
        """
        Add one to a post's likes or accusations.

        The increment happens inside the UPDATE statement so concurrent
        increments are not lost.
        """
        if counter not in POST_COUNTERS:
            raise ValueError(f"Unknown post counter: {counter}")

        column = getattr(Post, counter)
        with self._guard(f"update {counter}"):
            result = self.db.execute(
                update(Post).where(Post.id == post_id).values({counter: column + 1})
            )
            if result.rowcount == 0:
                self.db.rollback()
                raise NotFoundError("Post not found")
            self.db.commit()

        return self.get_post(post_id)

    # =========================================================================
    # Trials
    # =========================================================================

    def list_trials(self) -> List[Trial]:
        """All trials, newest first."""
        with self._guard("list trials"):
            return self.db.query(Trial).order_by(
                Trial.created_at.desc(), Trial.id.desc()
            ).all()

    def get_trial(self, trial_id: int) -> Optional[Trial]:
        with self._guard("load trial"):
            return self.db.query(Trial).filter(Trial.id == trial_id).first()

    def find_trial_for_post(self, post_id: int) -> Optional[Trial]:
        with self._guard("look up trial"):
            return self.db.query(Trial).filter(Trial.post_id == post_id).first()

    def create_trial(self, post_id: int, accused_id: int) -> Trial:
        """Insert an open trial. Raises ConflictError if the post already has one."""
        with self._guard("create trial"):
            trial = Trial(
                post_id=post_id,
                accused_id=accused_id,
                status=TrialStatus.OPEN.value,
            )
            self.db.add(trial)
            self.db.commit()
            self.db.refresh(trial)
            return trial

    # =========================================================================
    # Trial judges
    # =========================================================================

    def list_judges(self, trial_id: int) -> List[TrialJudge]:
        with self._guard("list judges"):
            return self.db.query(TrialJudge).filter(
                TrialJudge.trial_id == trial_id
            ).order_by(TrialJudge.id).all()

    def add_judges(self, trial_id: int, user_ids: Iterable[int]) -> List[TrialJudge]:
        """Insert the whole panel in one commit."""
        with self._guard("assign judges"):
            judges = [TrialJudge(trial_id=trial_id, user_id=uid) for uid in user_ids]
            self.db.add_all(judges)
            self.db.commit()
            return judges

    # =========================================================================
    # Trial votes
    # =========================================================================

    def find_vote(self, trial_id: int, user_id: int) -> Optional[TrialVote]:
        with self._guard("look up vote"):
            return self.db.query(TrialVote).filter(
                TrialVote.trial_id == trial_id,
                TrialVote.user_id == user_id
            ).first()

    def list_votes(self, trial_id: int) -> List[TrialVote]:
        with self._guard("list votes"):
            return self.db.query(TrialVote).filter(
                TrialVote.trial_id == trial_id
            ).order_by(TrialVote.id).all()

    def insert_vote(self, trial_id: int, user_id: int, role: str, vote: str) -> TrialVote:
        """Insert a vote. Raises ConflictError if the voter already has one."""
        with self._guard("record vote"):
            record = TrialVote(trial_id=trial_id, user_id=user_id, role=role, vote=vote)
            self.db.add(record)
            self.db.commit()
            self.db.refresh(record)
            return record

    def update_vote(self, record: TrialVote, role: str, vote: str) -> TrialVote:
        with self._guard("update vote"):
            record.role = role
            record.vote = vote
            self.db.commit()
            self.db.refresh(record)
            return record
