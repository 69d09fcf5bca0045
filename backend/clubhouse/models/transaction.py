"""FinanceTransaction ORM model — income/expense ledger rows."""
import uuid
import enum
from sqlalchemy import Column, String, DateTime, Integer, Numeric, JSON, Enum as SAEnum
from sqlalchemy.sql import func
from clubhouse.database import Base


class TransactionType(str, enum.Enum):
    income = "income"
    expense = "expense"


class PaymentMethod(str, enum.Enum):
    paypal = "paypal"
    zelle = "zelle"
    venmo = "venmo"
    check = "check"
    cash = "cash"


class TransactionStatus(str, enum.Enum):
    pending = "pending"
    completed = "completed"
    refunded = "refunded"
    cancelled = "cancelled"


class IncomePurpose(str, enum.Enum):
    membership = "membership"
    donation = "donation"
    event_fee = "event_fee"
    sponsor = "sponsor"


class FinanceTransaction(Base):
    __tablename__ = "transactions"

    transaction_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    type = Column(SAEnum(TransactionType), nullable=False)
    category = Column(String(100), nullable=False)
    subcategory = Column(String(100), nullable=True)
    amount = Column(Numeric(12, 2), nullable=False)
    method = Column(SAEnum(PaymentMethod), nullable=False)
    status = Column(SAEnum(TransactionStatus), nullable=False, default=TransactionStatus.pending)
    description = Column(String(1000), nullable=False)

    payer_id = Column(String(36), nullable=True)
    payer_name = Column(String(200), nullable=True)
    purpose = Column(SAEnum(IncomePurpose), nullable=True)
    notes = Column(String(2000), nullable=True)
    vendor = Column(String(200), nullable=True)
    payee = Column(String(200), nullable=True)
    invoice_number = Column(String(100), nullable=True)
    receipt_url = Column(String(1000), nullable=True)
    extra = Column("metadata", JSON, nullable=True)

    fiscal_year = Column(Integer, nullable=False, index=True)
    created_by = Column(String(36), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    approved_by = Column(String(36), nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)
