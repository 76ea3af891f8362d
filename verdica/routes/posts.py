"""
API routes for posts and the like/accuse actions on them.
"""

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from verdica.database import get_db, Post
from verdica.errors import VerdicaError, to_http_exception
from verdica.models import CreatePostRequest, PostResponse
from verdica.store import RecordStore


router = APIRouter(prefix="/posts", tags=["Posts"])


@router.get("", response_model=List[PostResponse])
def list_posts(db: Session = Depends(get_db)) -> List[PostResponse]:
    """Get all posts, newest first, with their author's username."""
    try:
        posts = RecordStore(db).list_posts()
    except VerdicaError as e:
        raise to_http_exception(e)
    return [_post_to_response(p) for p in posts]


@router.post("", response_model=PostResponse, status_code=201)
def create_post(
    request: CreatePostRequest,
    db: Session = Depends(get_db)
) -> PostResponse:
    """Publish a post. It starts with no likes and no accusations."""
    try:
        post = RecordStore(db).create_post(request.user_id, request.content)
    except VerdicaError as e:
        raise to_http_exception(e)
    return _post_to_response(post)


@router.post("/{post_id}/like", response_model=PostResponse)
def like_post(post_id: int, db: Session = Depends(get_db)) -> PostResponse:
    """Add a like to a post."""
    return _bump(db, post_id, "likes")


@router.post("/{post_id}/accuse", response_model=PostResponse)
def accuse_post(post_id: int, db: Session = Depends(get_db)) -> PostResponse:
    """
    Add an accusation to a post.

    Accusing does not open a trial by itself; trials are opened by
    POST /trials/check.
    """
    return _bump(db, post_id, "accusations")


# =============================================================================
# Helper Functions
# =============================================================================


def _bump(db: Session, post_id: int, counter: str) -> PostResponse:
    try:
        post = RecordStore(db).increment_post_counter(post_id, counter)
    except VerdicaError as e:
        raise to_http_exception(e)
    return _post_to_response(post)


def _post_to_response(post: Post) -> PostResponse:
    """Convert database Post to response model."""
    return PostResponse(
        id=post.id,
        user_id=post.user_id,
        content=post.content,
        likes=post.likes,
        accusations=post.accusations,
        created_at=post.created_at,
        username=post.author.username if post.author else None,
    )
