"""Pydantic schemas for Events and RSVPs."""
from __future__ import annotations
from datetime import datetime
from typing import Optional
from pydantic import BaseModel


class EventCreate(BaseModel):
    title: str
    date_time: datetime
    location: str = ""
    description: Optional[str] = None
    category: str = "training"
    banner_image: Optional[str] = None
    max_participants: Optional[int] = None  # 0 or null = unlimited
    status: str = "upcoming"


class EventUpdate(BaseModel):
    title: Optional[str] = None
    date_time: Optional[datetime] = None
    location: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    banner_image: Optional[str] = None
    max_participants: Optional[int] = None
    status: Optional[str] = None


class EventOut(BaseModel):
    event_id: str
    title: str
    date_time: datetime
    location: str
    description: Optional[str] = None
    category: str
    banner_image: Optional[str] = None
    status: str
    max_participants: Optional[int] = None
    registration_count: Optional[int] = None
    registered_users: list[str] = []
    created_by: str
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class RSVPRequest(BaseModel):
    status: str  # going, interested


class RSVPOut(BaseModel):
    event_id: str
    principal_id: str
    status: str
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class RegistrationStatusOut(BaseModel):
    event_id: str
    registered: bool


class RegistrationOut(BaseModel):
    principal_id: str
    event_id: str
    status: str
    name: str
    email: str
    registered_at: Optional[datetime] = None


class CascadeOut(BaseModel):
    label: str
    attempted: int
    removed: list[str]
    orphaned: list[str]
