"""Pydantic schemas for links and partners."""
from __future__ import annotations
from datetime import datetime
from typing import Optional
from pydantic import BaseModel


class LinkCreate(BaseModel):
    title: str
    url: str


class LinkOut(BaseModel):
    link_id: str
    title: str
    url: str
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class PartnerCreate(BaseModel):
    name: str
    description: str = ""
    logo_url: Optional[str] = None
    website_url: Optional[str] = None
    tier: str = "community"
    type: str = "corporate"
    featured: bool = False


class PartnerUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    logo_url: Optional[str] = None
    website_url: Optional[str] = None
    tier: Optional[str] = None
    type: Optional[str] = None
    featured: Optional[bool] = None


class PartnerOut(BaseModel):
    partner_id: str
    name: str
    description: str
    logo_url: Optional[str] = None
    website_url: Optional[str] = None
    tier: str
    type: str
    featured: bool

    model_config = {"from_attributes": True}
