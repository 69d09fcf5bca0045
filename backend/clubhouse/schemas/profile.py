"""Pydantic schemas for member profiles."""
from __future__ import annotations
from datetime import datetime
from typing import Optional
from pydantic import BaseModel


class ProfileUpdate(BaseModel):
    name: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    country_code: Optional[str] = None
    phone_number: Optional[str] = None
    avatar_url: Optional[str] = None
    bio: Optional[str] = None
    location: Optional[str] = None
    goals: Optional[str] = None
    sports_interests: Optional[list[str]] = None
    join_as: Optional[str] = None


class ProfileOut(BaseModel):
    principal_id: str
    role: str
    status: str
    suspended: bool
    name: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: str
    country_code: Optional[str] = None
    phone_number: Optional[str] = None
    avatar_url: Optional[str] = None
    bio: Optional[str] = None
    location: Optional[str] = None
    goals: Optional[str] = None
    sports_interests: Optional[list[str]] = None
    join_as: Optional[str] = None
    events: list[str] = []
    stats: dict[str, int]
    requested_at: Optional[datetime] = None
    last_login_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class ApprovalRequest(BaseModel):
    status: str  # approved, rejected, pending


class SuspensionRequest(BaseModel):
    suspended: bool
