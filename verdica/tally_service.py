"""
Vote tallies for trials.

Judge and audience votes count the same.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List

from verdica.database import TrialVote
from verdica.models import VoteOutcome
from verdica.store import RecordStore


logger = logging.getLogger(__name__)


def tally_votes(votes: Iterable[TrialVote]) -> Dict[str, int]:
    """Count votes per outcome. Unknown outcomes are skipped."""
    tally = {outcome.value: 0 for outcome in VoteOutcome}
    for v in votes:
        if v.vote in tally:
            tally[v.vote] += 1
        else:
            logger.warning(f"Ignoring vote {v.id} with unknown outcome {v.vote!r}")
    return tally


@dataclass(frozen=True)
class TallyResult:
    """Raw votes of a trial and their counts."""
    votes: List[TrialVote]
    tally: Dict[str, int]


class TallyService:

    def __init__(self, store: RecordStore):
        self.store = store

    def get_tally(self, trial_id: int) -> TallyResult:
        votes = self.store.list_votes(trial_id)
        return TallyResult(votes=votes, tally=tally_votes(votes))
