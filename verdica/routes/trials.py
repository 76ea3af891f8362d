"""
API routes for trials: opening them, their judges, voting and results.
"""

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from verdica.database import get_db, Trial, TrialVote
from verdica.errors import VerdicaError, to_http_exception
from verdica.models import (
    JudgeResponse, SubmitVoteRequest, TallyCounts, TrialCheckResponse,
    TrialResponse, TrialResultsResponse, VoteResponse
)
from verdica.store import RecordStore
from verdica.tally_service import TallyService
from verdica.trial_service import TrialService
from verdica.voting_service import VotingService


router = APIRouter(prefix="/trials", tags=["Trials"])


# =============================================================================
# Trials
# =============================================================================


@router.get("", response_model=List[TrialResponse])
def list_trials(db: Session = Depends(get_db)) -> List[TrialResponse]:
    """Get all trials, newest first."""
    try:
        trials = TrialService(RecordStore(db)).list_trials()
    except VerdicaError as e:
        raise to_http_exception(e)
    return [_trial_to_response(t) for t in trials]


@router.post("/check", response_model=TrialCheckResponse)
def check_trials(db: Session = Depends(get_db)) -> TrialCheckResponse:
    """
    Open trials for posts whose accusations have caught up with their likes.

    Every new trial gets a randomly drawn judge panel. Posts that are
    already on trial are left alone, so this can be called repeatedly.
    """
    try:
        result = TrialService(RecordStore(db)).evaluate_and_create_trials()
    except VerdicaError as e:
        raise to_http_exception(e)

    return TrialCheckResponse(
        created=result.created,
        trials=[_trial_to_response(t, details=False) for t in result.trials],
    )


@router.get("/{trial_id}/judges", response_model=List[JudgeResponse])
def get_judges(trial_id: int, db: Session = Depends(get_db)) -> List[JudgeResponse]:
    """Get the judge panel of a trial."""
    try:
        judges = TrialService(RecordStore(db)).get_judges(trial_id)
    except VerdicaError as e:
        raise to_http_exception(e)

    return [
        JudgeResponse(
            trial_id=j.trial_id,
            user_id=j.user_id,
            username=j.user.username if j.user else None,
        )
        for j in judges
    ]


# =============================================================================
# Voting
# =============================================================================


@router.post("/{trial_id}/vote", response_model=VoteResponse)
def submit_vote(
    trial_id: int,
    request: SubmitVoteRequest,
    db: Session = Depends(get_db)
) -> VoteResponse:
    """
    Vote guilty or not guilty on a trial.

    Judges of the trial vote with role "judge". Anyone else except the
    accused votes with role "audience". Voting again replaces the
    earlier vote.
    """
    try:
        vote = VotingService(RecordStore(db)).submit_vote(
            trial_id, request.user_id, request.role, request.vote
        )
    except VerdicaError as e:
        raise to_http_exception(e)
    return _vote_to_response(vote)


@router.get("/{trial_id}/results", response_model=TrialResultsResponse)
def get_results(trial_id: int, db: Session = Depends(get_db)) -> TrialResultsResponse:
    """Get every vote cast on a trial and the tally per outcome."""
    try:
        result = TallyService(RecordStore(db)).get_tally(trial_id)
    except VerdicaError as e:
        raise to_http_exception(e)

    return TrialResultsResponse(
        votes=[_vote_to_response(v) for v in result.votes],
        tally=TallyCounts(**result.tally),
    )


# =============================================================================
# Helper Functions
# =============================================================================


def _trial_to_response(trial: Trial, details: bool = True) -> TrialResponse:
    """Convert database Trial to response model."""
    return TrialResponse(
        id=trial.id,
        post_id=trial.post_id,
        accused_id=trial.accused_id,
        status=trial.status,
        created_at=trial.created_at,
        post_content=trial.post.content if details and trial.post else None,
        accused_username=trial.accused.username if details and trial.accused else None,
    )


def _vote_to_response(vote: TrialVote) -> VoteResponse:
    """Convert database TrialVote to response model."""
    return VoteResponse(
        id=vote.id,
        trial_id=vote.trial_id,
        user_id=vote.user_id,
        role=vote.role,
        vote=vote.vote,
        created_at=vote.created_at,
        updated_at=vote.updated_at,
    )
