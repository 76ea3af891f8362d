"""
Pydantic models for Verdica API requests and responses.
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


# =============================================================================
# Enums
# =============================================================================


class TrialStatus(str, Enum):
    """Lifecycle state of a trial."""
    OPEN = "open"


class VoteRole(str, Enum):
    """Capacity in which a user votes on a trial."""
    JUDGE = "judge"          # Drawn onto the trial's panel
    AUDIENCE = "audience"    # Anyone else except the accused


class VoteOutcome(str, Enum):
    """Verdict a voter casts."""
    GUILTY = "guilty"
    NOT_GUILTY = "not_guilty"


# =============================================================================
# Request Models
# =============================================================================


class CreateUserRequest(BaseModel):
    """Request to register a new user."""

    username: str = Field(
        ...,
        min_length=1,
        max_length=50,
        description="Unique display name"
    )

    @field_validator('username')
    @classmethod
    def strip_username(cls, v):
        """Reject usernames made only of whitespace."""
        v = v.strip()
        if not v:
            raise ValueError('username must not be blank')
        return v


class CreatePostRequest(BaseModel):
    """Request to publish a post."""

    user_id: int = Field(..., description="User ID of the author")
    content: str = Field(
        ...,
        min_length=1,
        max_length=2000,
        description="Text of the post"
    )


class SubmitVoteRequest(BaseModel):
    """
    Request to vote on a trial.

    Fields are optional here so that a missing field is reported
    by the voting service as a validation error with a clear message.
    Unknown role or vote values are rejected by the enums.
    """

    user_id: Optional[int] = Field(default=None, description="User ID of the voter")
    role: Optional[VoteRole] = Field(default=None, description="judge or audience")
    vote: Optional[VoteOutcome] = Field(default=None, description="guilty or not_guilty")


# =============================================================================
# Response Models
# =============================================================================


class UserResponse(BaseModel):
    """Response containing a single user."""

    id: int
    username: str
    prestige: int = 0
    created_at: datetime

    class Config:
        from_attributes = True


class PostResponse(BaseModel):
    """Response containing a single post."""

    id: int
    user_id: int
    content: str
    likes: int = 0
    accusations: int = 0
    created_at: datetime

    # Author name (populated on listings)
    username: Optional[str] = None

    class Config:
        from_attributes = True


class TrialResponse(BaseModel):
    """Response containing a single trial."""

    id: int
    post_id: int
    accused_id: int
    status: TrialStatus
    created_at: datetime

    # Joined details (populated on listings)
    post_content: Optional[str] = None
    accused_username: Optional[str] = None

    class Config:
        from_attributes = True


class TrialCheckResponse(BaseModel):
    """Response from a trial evaluation run."""

    created: int
    trials: List[TrialResponse] = Field(default_factory=list)


class JudgeResponse(BaseModel):
    """A user sitting on a trial's judge panel."""

    trial_id: int
    user_id: int
    username: Optional[str] = None

    class Config:
        from_attributes = True


class VoteResponse(BaseModel):
    """Response containing a single vote."""

    id: int
    trial_id: int
    user_id: int

    # Stored values are echoed as-is, including ones the tally ignores
    role: str
    vote: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class TallyCounts(BaseModel):
    """Vote counts per outcome."""

    guilty: int = 0
    not_guilty: int = 0


class TrialResultsResponse(BaseModel):
    """Votes cast on a trial and their tally."""

    votes: List[VoteResponse]
    tally: TallyCounts


class HealthResponse(BaseModel):
    """Health check response."""

    ok: bool = True
    service: str = "verdica-backend"
    version: str
    time: datetime
