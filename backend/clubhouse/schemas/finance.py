"""Pydantic schemas for finance transactions."""
from __future__ import annotations
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional
from pydantic import BaseModel, Field


class IncomeCreate(BaseModel):
    # Loose types: the service owns validation and its error messages
    amount: Any = None
    method: Optional[str] = None
    purpose: Optional[str] = None
    category: Optional[str] = None
    description: Optional[str] = None
    subcategory: Optional[str] = None
    payer_name: Optional[str] = None
    notes: Optional[str] = None
    metadata: Optional[dict[str, Any]] = None


class ExpenseCreate(BaseModel):
    amount: Any = None
    method: Optional[str] = None
    category: Optional[str] = None
    description: Optional[str] = None
    subcategory: Optional[str] = None
    vendor: Optional[str] = None
    payee: Optional[str] = None
    invoice_number: Optional[str] = None
    notes: Optional[str] = None
    receipt_url: Optional[str] = None

class TransactionOut(BaseModel):
    transaction_id: str
    type: str
    category: str
    subcategory: Optional[str] = None
    amount: Decimal
    method: str
    status: str
    description: str
    payer_id: Optional[str] = None
    payer_name: Optional[str] = None
    purpose: Optional[str] = None
    vendor: Optional[str] = None
    payee: Optional[str] = None
    invoice_number: Optional[str] = None
    receipt_url: Optional[str] = None
    notes: Optional[str] = None
    metadata: Optional[dict[str, Any]] = Field(default=None, validation_alias="extra")
    fiscal_year: int
    created_by: str
    created_at: Optional[datetime] = None
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class SummaryOut(BaseModel):
    fiscal_year: Optional[int] = None
    total_income: Decimal
    total_expense: Decimal
    net: Decimal
    by_category: dict[str, dict[str, Decimal]]
