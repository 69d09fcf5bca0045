"""Feed interaction layer — posts, likes and comments.

Like and comment records are the source of truth. ``likes_count`` and
``comment_count`` on the post are maintained by separate atomic
increment/decrement statements after the record write commits, so the two can
drift if the second statement fails; ``reconcile_post_counters`` recomputes
them.
"""
import logging
from typing import Optional

from sqlalchemy import func, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from clubhouse import clock
from clubhouse.errors import InvalidArgument, NotFound, PermissionDenied
from clubhouse.models.post import Comment, Post, PostLike, PostPrivacy
from clubhouse.services.cascade import run_cascade
from clubhouse.services.profile_store import ProfileStore

logger = logging.getLogger(__name__)

MAX_TITLE_LENGTH = 60
MAX_BODY_LENGTH = 5000
MAX_COMMENT_LENGTH = 2000


def get_post(db: Session, post_id: str) -> Post:
    post = db.query(Post).filter(Post.post_id == post_id).first()
    if not post:
        raise NotFound("Post not found")
    return post


def _bump_post_counter(db: Session, post_id: str, column, delta: int) -> None:
    """Apply a counter delta as its own statement; failures leave drift behind."""
    condition = [Post.post_id == post_id]
    if delta < 0:
        condition.append(column > 0)
    try:
        db.execute(
            update(Post)
            .where(*condition)
            .values({column: column + delta})
            .execution_options(synchronize_session=False)
        )
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.warning("Counter %s on post %s not updated (drift until reconcile): %s", column.key, post_id, exc)


def _bump_profile_stat(db: Session, principal_id: str, stat: str, delta: int) -> None:
    try:
        ProfileStore(db).increment_stat(principal_id, stat, delta)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.warning("Stat %s for %s not updated: %s", stat, principal_id, exc)


def create_post(
    db: Session,
    author_id: str,
    body: str,
    title: Optional[str] = None,
    image_url: Optional[str] = None,
    privacy: str = "public",
) -> Post:
    body = (body or "").strip()
    if not body:
        raise InvalidArgument("body is required")
    if len(body) > MAX_BODY_LENGTH:
        raise InvalidArgument(f"body must be at most {MAX_BODY_LENGTH} characters")
    title = (title or "").strip() or "Post"
    if len(title) > MAX_TITLE_LENGTH:
        raise InvalidArgument(f"title must be at most {MAX_TITLE_LENGTH} characters")
    try:
        privacy_value = PostPrivacy(privacy)
    except ValueError as exc:
        raise InvalidArgument(f"Invalid privacy: {privacy}") from exc

    profile = ProfileStore(db).get(author_id)
    post = Post(
        author_id=author_id,
        author_name=profile.name if profile else None,
        title=title,
        body=body,
        image_url=image_url,
        privacy=privacy_value,
        likes_count=0,
        comment_count=0,
    )
    db.add(post)
    db.commit()
    db.refresh(post)
    _bump_profile_stat(db, author_id, "posts", 1)
    logger.info("Principal %s created post %s", author_id, post.post_id)
    return post


def list_posts(db: Session, author_id: Optional[str] = None, limit: int = 50) -> list[Post]:
    query = db.query(Post)
    if author_id:
        query = query.filter(Post.author_id == author_id)
    return query.order_by(Post.created_at.desc()).limit(limit).all()


def _require_author_or_admin(owner_id: str, actor_id: str, actor_is_admin: bool, what: str) -> None:
    if owner_id != actor_id and not actor_is_admin:
        logger.warning("Principal %s denied deleting %s owned by %s", actor_id, what, owner_id)
        raise PermissionDenied(f"Only the author or an admin can delete this {what}.")


def delete_post(db: Session, post_id: str, actor_id: str, actor_is_admin: bool = False) -> dict:
    """Best-effort delete of comments and likes, then the post itself."""
    post = get_post(db, post_id)
    _require_author_or_admin(post.author_id, actor_id, actor_is_admin, "post")
    author_id = post.author_id

    comment_ids = [cid for (cid,) in db.query(Comment.comment_id).filter(Comment.post_id == post_id).all()]
    comments = run_cascade(
        db, f"post {post_id} comments", comment_ids,
        lambda cid: db.query(Comment).filter(Comment.comment_id == cid).delete(synchronize_session=False),
    )
    liker_ids = [pid for (pid,) in db.query(PostLike.principal_id).filter(PostLike.post_id == post_id).all()]
    likes = run_cascade(
        db, f"post {post_id} likes", liker_ids,
        lambda pid: db.query(PostLike).filter(
            PostLike.post_id == post_id, PostLike.principal_id == pid
        ).delete(synchronize_session=False),
    )

    db.delete(get_post(db, post_id))
    db.commit()
    _bump_profile_stat(db, author_id, "posts", -1)
    logger.info("Principal %s deleted post %s", actor_id, post_id)
    return {"comments": comments.as_dict(), "likes": likes.as_dict()}


def has_liked(db: Session, post_id: str, principal_id: str) -> bool:
    return db.get(PostLike, (post_id, principal_id)) is not None


def toggle_like(db: Session, post_id: str, principal_id: str, like: bool) -> bool:
    """Set the like state. Returns True when a record was created or removed."""
    post = get_post(db, post_id)
    author_id = post.author_id
    existing = db.get(PostLike, (post_id, principal_id))

    if like:
        if existing is not None:
            return False
        db.add(PostLike(post_id=post_id, principal_id=principal_id))
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            return False
        _bump_post_counter(db, post_id, Post.likes_count, 1)
        _bump_profile_stat(db, author_id, "likes", 1)
        logger.info("Principal %s liked post %s", principal_id, post_id)
        return True

    if existing is None:
        return False
    db.delete(existing)
    db.commit()
    _bump_post_counter(db, post_id, Post.likes_count, -1)
    _bump_profile_stat(db, author_id, "likes", -1)
    logger.info("Principal %s unliked post %s", principal_id, post_id)
    return True


def list_comments(db: Session, post_id: str) -> list[Comment]:
    get_post(db, post_id)
    return (
        db.query(Comment)
        .filter(Comment.post_id == post_id)
        .order_by(Comment.created_at.asc())
        .all()
    )


def add_comment(
    db: Session,
    post_id: str,
    author_id: str,
    body: str,
    parent_comment_id: Optional[str] = None,
) -> Comment:
    get_post(db, post_id)
    body = (body or "").strip()
    if not body:
        raise InvalidArgument("Comment body is required")
    if len(body) > MAX_COMMENT_LENGTH:
        raise InvalidArgument(f"Comment must be at most {MAX_COMMENT_LENGTH} characters")
    if parent_comment_id:
        parent = db.query(Comment).filter(Comment.comment_id == parent_comment_id).first()
        if parent is None or parent.post_id != post_id:
            raise InvalidArgument("parent_comment_id does not belong to this post")

    profile = ProfileStore(db).get(author_id)
    comment = Comment(
        post_id=post_id,
        parent_comment_id=parent_comment_id,
        author_id=author_id,
        author_name=profile.name if profile else None,
        author_avatar=profile.avatar_url if profile else None,
        body=body,
        created_at=clock.utcnow(),
    )
    db.add(comment)
    db.commit()
    db.refresh(comment)
    _bump_post_counter(db, post_id, Post.comment_count, 1)
    logger.info("Principal %s commented on post %s", author_id, post_id)
    return comment


def delete_comment(db: Session, comment_id: str, actor_id: str, actor_is_admin: bool = False) -> None:
    """Delete one comment. Replies pointing at it are left in place."""
    comment = db.query(Comment).filter(Comment.comment_id == comment_id).first()
    if comment is None:
        raise NotFound("Comment not found")
    _require_author_or_admin(comment.author_id, actor_id, actor_is_admin, "comment")
    post_id = comment.post_id
    db.delete(comment)
    db.commit()
    _bump_post_counter(db, post_id, Post.comment_count, -1)
    logger.info("Principal %s deleted comment %s on post %s", actor_id, comment_id, post_id)


def reconcile_post_counters(db: Session, post_id: str) -> dict:
    post = get_post(db, post_id)
    likes = db.query(func.count()).select_from(PostLike).filter(PostLike.post_id == post_id).scalar()
    comments = db.query(func.count()).select_from(Comment).filter(Comment.post_id == post_id).scalar()
    result = {
        "post_id": post_id,
        "likes_count": {"before": post.likes_count, "after": likes},
        "comment_count": {"before": post.comment_count, "after": comments},
    }
    if post.likes_count != likes or post.comment_count != comments:
        post.likes_count = likes
        post.comment_count = comments
        db.commit()
        logger.warning("Reconciled counters for post %s: likes=%d comments=%d", post_id, likes, comments)
    return result
