"""Pydantic schemas for the feed."""
from __future__ import annotations
from datetime import datetime
from typing import Optional
from pydantic import BaseModel


class PostCreate(BaseModel):
    body: str
    title: Optional[str] = None
    image_url: Optional[str] = None
    privacy: str = "public"


class PostOut(BaseModel):
    post_id: str
    author_id: str
    author_name: Optional[str] = None
    title: str
    body: str
    image_url: Optional[str] = None
    privacy: str
    likes_count: int
    comment_count: int
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class LikeOut(BaseModel):
    post_id: str
    liked: bool
    likes_count: int


class CommentCreate(BaseModel):
    body: str
    parent_comment_id: Optional[str] = None


class CommentOut(BaseModel):
    comment_id: str
    post_id: str
    parent_comment_id: Optional[str] = None
    author_id: str
    author_name: Optional[str] = None
    author_avatar: Optional[str] = None
    body: str
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
