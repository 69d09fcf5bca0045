"""Finance ledger — member self-reported income, admin expenses and review."""
import csv
import io
import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from sqlalchemy.orm import Session

from clubhouse import clock
from clubhouse.errors import InvalidArgument, NotFound, PermissionDenied
from clubhouse.identity.provider import SessionPrincipal
from clubhouse.models.profile import ProfileStatus
from clubhouse.models.transaction import (
    FinanceTransaction,
    IncomePurpose,
    PaymentMethod,
    TransactionStatus,
    TransactionType,
)
from clubhouse.services import audit
from clubhouse.services.claim_sync import require_admin_claim, require_principal
from clubhouse.services.profile_store import ProfileStore

logger = logging.getLogger(__name__)

# Only PayPal payments are confirmed by the processor at report time
AUTO_COMPLETED_METHODS = frozenset({PaymentMethod.paypal})
SUMMARY_STATUSES = (TransactionStatus.pending, TransactionStatus.completed)


def _parse_amount(amount: Any) -> Decimal:
    try:
        value = Decimal(str(amount)).quantize(Decimal("0.01"))
    except (InvalidOperation, ValueError, TypeError) as exc:
        raise InvalidArgument("amount must be a number") from exc
    if value.is_nan():
        raise InvalidArgument("amount must be a number")
    if value <= 0:
        raise InvalidArgument("amount must be greater than 0")
    return value


def _parse_enum(enum_cls, value: Optional[str], field: str):
    try:
        return enum_cls((value or "").strip())
    except ValueError as exc:
        allowed = ", ".join(m.value for m in enum_cls)
        raise InvalidArgument(f"{field} must be one of: {allowed}") from exc


def _require_text(value: Optional[str], field: str) -> str:
    value = (value or "").strip()
    if not value:
        raise InvalidArgument(f"{field} is required")
    return value


def _optional_text(value: Optional[str]) -> Optional[str]:
    return (value or "").strip() or None


def record_income_transaction(
    db: Session,
    caller: Optional[SessionPrincipal],
    amount: Any,
    method: Optional[str],
    purpose: Optional[str],
    category: Optional[str],
    description: Optional[str],
    subcategory: Optional[str] = None,
    payer_name: Optional[str] = None,
    notes: Optional[str] = None,
    metadata: Optional[dict[str, Any]] = None,
) -> FinanceTransaction:
    """Record a member-reported income transaction.

    The caller is re-verified here: a principal must be present and must own
    an approved, non-suspended profile.
    """
    principal_id = require_principal(caller)
    profile = ProfileStore(db).get(principal_id)
    if profile is None or profile.suspended or profile.status != ProfileStatus.approved:
        logger.warning("Principal %s denied recording income", principal_id)
        raise PermissionDenied("Only approved members can record payments.")

    value = _parse_amount(amount)
    method_value = _parse_enum(PaymentMethod, method, "method")
    purpose_value = _parse_enum(IncomePurpose, purpose, "purpose")
    category = _require_text(category, "category")
    description = _require_text(description, "description")

    now = clock.utcnow()
    status = (
        TransactionStatus.completed if method_value in AUTO_COMPLETED_METHODS else TransactionStatus.pending
    )
    txn = FinanceTransaction(
        type=TransactionType.income,
        category=category,
        subcategory=_optional_text(subcategory),
        amount=value,
        method=method_value,
        status=status,
        description=description,
        payer_id=principal_id,
        payer_name=(payer_name or "").strip() or profile.name or profile.email,
        purpose=purpose_value,
        notes=notes,
        extra=metadata or None,
        fiscal_year=now.year,
        created_by=principal_id,
        created_at=now,
    )
    db.add(txn)
    db.flush()
    audit.record(
        db, "record_income_transaction", principal_id, txn.transaction_id,
        {
            "amount": str(value),
            "method": method_value.value,
            "purpose": purpose_value.value,
            "category": category,
            "status": status.value,
        },
        now,
    )
    db.commit()
    db.refresh(txn)
    logger.info(
        "Principal %s recorded %s income %s via %s (%s)",
        principal_id, purpose_value.value, value, method_value.value, txn.transaction_id,
    )
    return txn


def record_expense_transaction(
    db: Session,
    caller: Optional[SessionPrincipal],
    amount: Any,
    method: Optional[str],
    category: Optional[str],
    description: Optional[str],
    subcategory: Optional[str] = None,
    vendor: Optional[str] = None,
    payee: Optional[str] = None,
    invoice_number: Optional[str] = None,
    notes: Optional[str] = None,
    receipt_url: Optional[str] = None,
) -> FinanceTransaction:
    """Record a club expense. Admin claim only; always starts pending."""
    actor_id = require_admin_claim(caller)

    value = _parse_amount(amount)
    method_value = _parse_enum(PaymentMethod, method, "method")
    category = _require_text(category, "category")
    description = _require_text(description, "description")

    now = clock.utcnow()
    txn = FinanceTransaction(
        type=TransactionType.expense,
        category=category,
        subcategory=_optional_text(subcategory),
        amount=value,
        method=method_value,
        status=TransactionStatus.pending,
        description=description,
        vendor=_optional_text(vendor),
        payee=_optional_text(payee),
        invoice_number=_optional_text(invoice_number),
        notes=notes,
        receipt_url=_optional_text(receipt_url),
        fiscal_year=now.year,
        created_by=actor_id,
        created_at=now,
    )
    db.add(txn)
    db.flush()
    audit.record(
        db, "record_expense_transaction", actor_id, txn.transaction_id,
        {"amount": str(value), "method": method_value.value, "category": category, "status": "pending"},
        now,
    )
    db.commit()
    db.refresh(txn)
    logger.info("Principal %s recorded expense %s for %s (%s)", actor_id, value, category, txn.transaction_id)
    return txn


def list_transactions(
    db: Session,
    fiscal_year: Optional[int] = None,
    type: Optional[str] = None,
    status: Optional[str] = None,
    category: Optional[str] = None,
    limit: int = 500,
) -> list[FinanceTransaction]:
    query = db.query(FinanceTransaction)
    if fiscal_year:
        query = query.filter(FinanceTransaction.fiscal_year == fiscal_year)
    if type:
        query = query.filter(FinanceTransaction.type == _parse_enum(TransactionType, type, "type"))
    if status:
        query = query.filter(FinanceTransaction.status == _parse_enum(TransactionStatus, status, "status"))
    if category:
        query = query.filter(FinanceTransaction.category == category)
    return query.order_by(FinanceTransaction.created_at.desc()).limit(limit).all()


def approve_transaction(db: Session, actor_id: str, transaction_id: str) -> FinanceTransaction:
    txn = db.query(FinanceTransaction).filter(FinanceTransaction.transaction_id == transaction_id).first()
    if not txn:
        raise NotFound("Transaction not found")
    if txn.status != TransactionStatus.pending:
        raise InvalidArgument(f"Only pending transactions can be approved (status is {txn.status.value})")

    now = clock.utcnow()
    txn.status = TransactionStatus.completed
    txn.approved_by = actor_id
    txn.approved_at = now
    audit.record(db, "approve_transaction", actor_id, transaction_id, {"status": "completed"}, now)
    db.commit()
    db.refresh(txn)
    logger.info("Principal %s approved transaction %s", actor_id, transaction_id)
    return txn


def financial_summary(db: Session, fiscal_year: Optional[int] = None) -> dict[str, Any]:
    """Income/expense totals over pending and completed rows of one fiscal year.

    Defaults to the current fiscal year.
    """
    fiscal_year = fiscal_year or clock.utcnow().year
    query = db.query(FinanceTransaction).filter(
        FinanceTransaction.status.in_(SUMMARY_STATUSES),
        FinanceTransaction.fiscal_year == fiscal_year,
    )

    totals = {TransactionType.income: Decimal("0"), TransactionType.expense: Decimal("0")}
    by_category: dict[str, dict[str, Decimal]] = {}
    for txn in query.all():
        amount = Decimal(txn.amount)
        totals[txn.type] += amount
        bucket = by_category.setdefault(txn.category, {"income": Decimal("0"), "expense": Decimal("0")})
        bucket[txn.type.value] += amount

    income = totals[TransactionType.income]
    expense = totals[TransactionType.expense]
    return {
        "fiscal_year": fiscal_year,
        "total_income": income,
        "total_expense": expense,
        "net": income - expense,
        "by_category": by_category,
    }


CSV_COLUMNS = (
    "Date", "Type", "Category", "Subcategory", "Description", "Amount", "Method", "Status",
    "Payer/Payee", "Purpose", "Invoice #", "Approved By", "Notes",
)


def export_transactions_csv(db: Session, fiscal_year: int) -> str:
    """One fiscal year of the ledger as CSV for the accountant."""
    rows = (
        db.query(FinanceTransaction)
        .filter(FinanceTransaction.fiscal_year == fiscal_year)
        .order_by(FinanceTransaction.created_at.asc())
        .all()
    )
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_COLUMNS)
    for txn in rows:
        counterparty = txn.payer_name if txn.type == TransactionType.income else txn.payee
        writer.writerow((
            txn.created_at.date().isoformat() if txn.created_at else "",
            txn.type.value,
            txn.category,
            txn.subcategory or "",
            txn.description,
            f"{Decimal(txn.amount):.2f}",
            txn.method.value,
            txn.status.value,
            counterparty or "",
            txn.purpose.value if txn.purpose else "",
            txn.invoice_number or "",
            txn.approved_by or "",
            txn.notes or "",
        ))
    logger.info("Exported %d transactions for fiscal year %d", len(rows), fiscal_year)
    return buffer.getvalue()
