"""Pydantic schemas for sign-up, sign-in and the access decision."""
from __future__ import annotations
from typing import Optional
from pydantic import BaseModel


class SignupRequest(BaseModel):
    email: str
    password: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    name: Optional[str] = None
    country_code: Optional[str] = None
    phone_number: Optional[str] = None
    bio: Optional[str] = None
    location: Optional[str] = None
    goals: Optional[str] = None
    sports_interests: Optional[list[str]] = None
    join_as: Optional[str] = None


class LoginRequest(BaseModel):
    email: str
    password: str


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    principal_id: str
    status: Optional[str] = None


class PasswordResetRequestIn(BaseModel):
    email: str


class AccessOut(BaseModel):
    state: str
    principal_id: Optional[str] = None
    email: Optional[str] = None
    profile_role: Optional[str] = None
    claim_admin: bool = False
    can_interact: bool = False


class NoticeOut(BaseModel):
    message: Optional[str] = None
