"""Feed ORM models — posts, per-member likes and top-level comments."""
import uuid
import enum
from sqlalchemy import Column, String, DateTime, Integer, Enum as SAEnum
from sqlalchemy.sql import func
from clubhouse.database import Base


class PostPrivacy(str, enum.Enum):
    public = "public"
    members = "members"
    friends = "friends"


class Post(Base):
    __tablename__ = "posts"

    post_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    author_id = Column(String(36), nullable=False, index=True)
    author_name = Column(String(200), nullable=True)
    title = Column(String(60), nullable=False, default="Post")
    body = Column(String(5000), nullable=False)
    image_url = Column(String(1000), nullable=True)
    privacy = Column(SAEnum(PostPrivacy), nullable=False, default=PostPrivacy.public)
    likes_count = Column(Integer, nullable=False, default=0)
    comment_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class PostLike(Base):
    """Existence of the row means the principal likes the post."""

    __tablename__ = "post_likes"

    post_id = Column(String(36), primary_key=True)
    principal_id = Column(String(36), primary_key=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class Comment(Base):
    __tablename__ = "comments"

    comment_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    # Plain column: comments may briefly outlive their post during cleanup
    post_id = Column(String(36), nullable=False, index=True)
    parent_comment_id = Column(String(36), nullable=True)
    author_id = Column(String(36), nullable=False)
    author_name = Column(String(200), nullable=True)
    author_avatar = Column(String(1000), nullable=True)
    body = Column(String(2000), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
