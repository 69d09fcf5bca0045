"""Finance API routes — member income self-report, admin expenses and review."""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from clubhouse import clock
from clubhouse.database import get_db
from clubhouse.dependencies import get_principal, require_admin_claim
from clubhouse.identity.provider import SessionPrincipal
from clubhouse.schemas.finance import ExpenseCreate, IncomeCreate, SummaryOut, TransactionOut
from clubhouse.services import finance

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/transactions/income", response_model=TransactionOut, status_code=status.HTTP_201_CREATED)
def record_income(
    payload: IncomeCreate,
    caller: Optional[SessionPrincipal] = Depends(get_principal),
    db: Session = Depends(get_db),
):
    """Caller and arguments are validated by the service."""
    return finance.record_income_transaction(db, caller, **payload.model_dump())


@router.post("/transactions/expense", response_model=TransactionOut, status_code=status.HTTP_201_CREATED)
def record_expense(
    payload: ExpenseCreate,
    caller: Optional[SessionPrincipal] = Depends(get_principal),
    db: Session = Depends(get_db),
):
    return finance.record_expense_transaction(db, caller, **payload.model_dump())


@router.get("/transactions", response_model=list[TransactionOut])
def list_transactions(
    fiscal_year: Optional[int] = Query(None),
    type: Optional[str] = Query(None),
    status: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    caller: SessionPrincipal = Depends(require_admin_claim),
    db: Session = Depends(get_db),
):
    return finance.list_transactions(db, fiscal_year=fiscal_year, type=type, status=status, category=category)


@router.post("/transactions/{transaction_id}/approve", response_model=TransactionOut)
def approve_transaction(
    transaction_id: str,
    caller: SessionPrincipal = Depends(require_admin_claim),
    db: Session = Depends(get_db),
):
    return finance.approve_transaction(db, caller.principal_id, transaction_id)


@router.get("/summary", response_model=SummaryOut)
def summary(
    fiscal_year: Optional[int] = Query(None),
    caller: SessionPrincipal = Depends(require_admin_claim),
    db: Session = Depends(get_db),
):
    return finance.financial_summary(db, fiscal_year=fiscal_year)


@router.get("/export")
def export_csv(
    fiscal_year: Optional[int] = Query(None),
    caller: SessionPrincipal = Depends(require_admin_claim),
    db: Session = Depends(get_db),
):
    year = fiscal_year or clock.utcnow().year
    return Response(
        content=finance.export_transactions_csv(db, year),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="transactions-{year}.csv"'},
    )
