"""Pydantic schemas for the privileged admin surface."""
from __future__ import annotations
from datetime import datetime
from typing import Any, Optional
from pydantic import BaseModel


class SetRoleRequest(BaseModel):
    role: Optional[str] = None


class OkOut(BaseModel):
    ok: bool = True


class ReconcileOut(BaseModel):
    fixed: list[str]


class AuditLogOut(BaseModel):
    entry_id: str
    action: str
    performed_by: str
    target_id: Optional[str] = None
    changes: Optional[dict[str, Any]] = None
    timestamp: datetime

    model_config = {"from_attributes": True}
