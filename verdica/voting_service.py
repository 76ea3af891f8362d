"""
Voting on trials.

Judges vote as "judge", everyone else except the accused votes as
"audience". A user holds one vote per trial; voting again overwrites it.
"""

import logging
from typing import Optional, Union

from verdica.database import TrialVote
from verdica.errors import (
    AuthorizationError, ConflictError, NotFoundError, PersistenceError, ValidationError
)
from verdica.models import VoteOutcome, VoteRole
from verdica.store import RecordStore


logger = logging.getLogger(__name__)


class VotingService:
    """Validates and records trial votes."""

    def __init__(self, store: RecordStore):
        self.store = store

    def submit_vote(
        self,
        trial_id: int,
        user_id: Optional[int],
        role: Union[VoteRole, str, None],
        outcome: Union[VoteOutcome, str, None],
    ) -> TrialVote:
        """
        Cast or change a user's vote on a trial.

        Args:
            trial_id: Trial being voted on
            user_id: Voter
            role: "judge" or "audience"
            outcome: "guilty" or "not_guilty"

        Returns:
            The stored vote, new or overwritten

        Raises:
            ValidationError: a field is missing or not a known value
            NotFoundError: the trial or the voter does not exist
            AuthorizationError: the voter may not vote in this role
        """
        if user_id is None or not role or not outcome:
            raise ValidationError("user_id, role and vote required")

        role = _parse_enum(VoteRole, role, "role")
        outcome = _parse_enum(VoteOutcome, outcome, "vote")

        trial = self.store.get_trial(trial_id)
        if trial is None:
            raise NotFoundError("Trial not found")

        if self.store.get_user(user_id) is None:
            raise NotFoundError("User not found")

        judge_ids = {j.user_id for j in self.store.list_judges(trial_id)}
        self._check_role(role, user_id, judge_ids, trial.accused_id)

        return self._upsert(trial_id, user_id, role.value, outcome.value)

    def _check_role(self, role: VoteRole, user_id: int, judge_ids: set, accused_id: int):
        if role == VoteRole.JUDGE:
            if user_id not in judge_ids:
                raise AuthorizationError("user is not a judge of this trial")
        elif role == VoteRole.AUDIENCE:
            if user_id in judge_ids:
                raise AuthorizationError("a judge cannot vote as audience")
            if user_id == accused_id:
                raise AuthorizationError("the accused cannot vote")

    def _upsert(self, trial_id: int, user_id: int, role: str, outcome: str) -> TrialVote:
        existing = self.store.find_vote(trial_id, user_id)
        if existing:
            logger.info(f"User {user_id} changed vote on trial {trial_id} to {role}/{outcome}")
            return self.store.update_vote(existing, role, outcome)

        try:
            record = self.store.insert_vote(trial_id, user_id, role, outcome)
        except ConflictError:
            # A concurrent submission inserted first; overwrite it instead
            existing = self.store.find_vote(trial_id, user_id)
            if existing is None:
                raise PersistenceError(f"Could not record vote of user {user_id} on trial {trial_id}")
            return self.store.update_vote(existing, role, outcome)

        logger.info(f"User {user_id} voted {role}/{outcome} on trial {trial_id}")
        return record


def _parse_enum(enum_cls, value, name: str):
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ValidationError(f"Invalid {name} '{value}': expected one of {allowed}") from None
