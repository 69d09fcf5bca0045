"""Feed API routes — posts, likes and comments."""
import logging
from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from clubhouse.database import get_db
from clubhouse.dependencies import require_admin, require_approved, require_signed_in
from clubhouse.schemas.post import CommentCreate, CommentOut, LikeOut, PostCreate, PostOut
from clubhouse.services import feed
from clubhouse.services.access_control import AccessDecision

logger = logging.getLogger(__name__)
router = APIRouter()


def _like_state(db: Session, post_id: str, principal_id: str) -> LikeOut:
    post = feed.get_post(db, post_id)
    db.refresh(post)
    return LikeOut(post_id=post_id, liked=feed.has_liked(db, post_id, principal_id), likes_count=post.likes_count)


@router.get("/", response_model=list[PostOut])
def list_posts(
    limit: int = Query(50, ge=1, le=200),
    decision: AccessDecision = Depends(require_signed_in),
    db: Session = Depends(get_db),
):
    """Newest first."""
    return feed.list_posts(db, limit=limit)


@router.post("/", response_model=PostOut, status_code=status.HTTP_201_CREATED)
def create_post(payload: PostCreate, decision: AccessDecision = Depends(require_approved), db: Session = Depends(get_db)):
    return feed.create_post(db, decision.principal_id, **payload.model_dump())


@router.get("/{post_id}", response_model=PostOut)
def get_post(post_id: str, decision: AccessDecision = Depends(require_signed_in), db: Session = Depends(get_db)):
    return feed.get_post(db, post_id)


@router.delete("/{post_id}")
def delete_post(post_id: str, decision: AccessDecision = Depends(require_approved), db: Session = Depends(get_db)):
    """Author or admin. Comments and likes are removed best-effort first."""
    return feed.delete_post(db, post_id, decision.principal_id, actor_is_admin=decision.is_admin)


@router.put("/{post_id}/like", response_model=LikeOut)
def like_post(post_id: str, decision: AccessDecision = Depends(require_approved), db: Session = Depends(get_db)):
    feed.toggle_like(db, post_id, decision.principal_id, like=True)
    return _like_state(db, post_id, decision.principal_id)


@router.delete("/{post_id}/like", response_model=LikeOut)
def unlike_post(post_id: str, decision: AccessDecision = Depends(require_approved), db: Session = Depends(get_db)):
    feed.toggle_like(db, post_id, decision.principal_id, like=False)
    return _like_state(db, post_id, decision.principal_id)


@router.get("/{post_id}/like", response_model=LikeOut)
def like_status(post_id: str, decision: AccessDecision = Depends(require_signed_in), db: Session = Depends(get_db)):
    return _like_state(db, post_id, decision.principal_id)


@router.get("/{post_id}/comments", response_model=list[CommentOut])
def list_comments(post_id: str, decision: AccessDecision = Depends(require_signed_in), db: Session = Depends(get_db)):
    """Oldest first."""
    return feed.list_comments(db, post_id)


@router.post("/{post_id}/comments", response_model=CommentOut, status_code=status.HTTP_201_CREATED)
def add_comment(
    post_id: str,
    payload: CommentCreate,
    decision: AccessDecision = Depends(require_approved),
    db: Session = Depends(get_db),
):
    return feed.add_comment(db, post_id, decision.principal_id, payload.body, payload.parent_comment_id)


@router.delete("/comments/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_comment(comment_id: str, decision: AccessDecision = Depends(require_approved), db: Session = Depends(get_db)):
    feed.delete_comment(db, comment_id, decision.principal_id, actor_is_admin=decision.is_admin)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{post_id}/reconcile")
def reconcile_post_counters(post_id: str, decision: AccessDecision = Depends(require_admin), db: Session = Depends(get_db)):
    return feed.reconcile_post_counters(db, post_id)
