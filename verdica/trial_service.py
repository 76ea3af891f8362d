"""
Trial lifecycle: opening trials on accused posts and drawing judge panels.

A post is put on trial once its accusations reach its likes. Each trial
gets a panel of up to ``judge_panel_size`` judges drawn at random from
every user except the accused. The random source is pluggable so tests
can pass a seeded generator; production uses system entropy.
"""

import logging
import random
from dataclasses import dataclass, field
from typing import List, Optional

from verdica.config import get_settings
from verdica.database import Trial, TrialJudge
from verdica.errors import ConflictError
from verdica.store import PostCounters, RecordStore


logger = logging.getLogger(__name__)


def is_trial_eligible(post: PostCounters) -> bool:
    """
    Whether a post qualifies for a trial.

    Note that a brand-new post (0 likes, 0 accusations) qualifies.
    """
    return post.accusations >= post.likes


@dataclass(frozen=True)
class TrialCheckResult:
    """Trials opened by one evaluation run."""
    trials: List[Trial] = field(default_factory=list)

    @property
    def created(self) -> int:
        return len(self.trials)


class TrialService:
    """
    Opens trials and assigns judges.

    Usage:
        service = TrialService(RecordStore(db))
        result = service.evaluate_and_create_trials()
    """

    def __init__(
        self,
        store: RecordStore,
        rng: Optional[random.Random] = None,
        panel_size: Optional[int] = None,
    ):
        self.store = store
        self.rng = rng or random.SystemRandom()
        self.panel_size = panel_size if panel_size is not None else get_settings().judge_panel_size

    def evaluate_and_create_trials(self) -> TrialCheckResult:
        """
        Open a trial for every eligible post that does not have one yet.

        Safe to run repeatedly: posts already on trial are skipped. Each
        trial and its panel are committed as they are created, so if a
        later step fails, trials opened earlier in the run stay in place.

        Returns:
            TrialCheckResult with the trials created by this run
        """
        posts = self.store.list_post_counters()
        created: List[Trial] = []

        for post in posts:
            if not is_trial_eligible(post):
                continue
            if self.store.find_trial_for_post(post.id) is not None:
                continue

            try:
                trial = self.store.create_trial(post_id=post.id, accused_id=post.user_id)
            except ConflictError:
                # Another run opened this trial between our check and insert
                logger.warning(f"Trial for post {post.id} already created elsewhere, skipping")
                continue

            trial_id, accused_id = trial.id, trial.accused_id
            judge_ids = self.select_judges(accused_id)
            if judge_ids:
                self.store.add_judges(trial_id, judge_ids)

            logger.info(
                f"Opened trial {trial_id} for post {post.id} "
                f"(accused user {accused_id}, {len(judge_ids)} judges)"
            )
            created.append(trial)

        logger.info(f"Trial evaluation complete: {len(created)} new trials from {len(posts)} posts")
        return TrialCheckResult(trials=created)

    def select_judges(self, accused_id: int) -> List[int]:
        """
        Draw a judge panel for a trial against ``accused_id``.

        Args:
            accused_id: The accused user, who is never eligible

        Returns:
            Up to ``panel_size`` distinct user IDs; empty if nobody else exists
        """
        pool = [u.id for u in self.store.list_users() if u.id != accused_id]
        self.rng.shuffle(pool)
        return pool[:min(self.panel_size, len(pool))]

    def get_judges(self, trial_id: int) -> List[TrialJudge]:
        """Judges assigned to a trial."""
        return self.store.list_judges(trial_id)

    def list_trials(self) -> List[Trial]:
        """All trials, newest first."""
        return self.store.list_trials()
