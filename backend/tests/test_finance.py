"""Tests for recordIncomeTransaction and the admin finance review.

Covers:
- Caller re-verification: unauthenticated, unapproved, suspended
- Argument validation: amount, method, purpose, category, description
- Status by payment method, fiscal year, audit entry
- Admin (claim) expenses: record, validation, audit
- Admin (claim) review: list filters, approve, summary by fiscal year, CSV export
"""
import csv
import io
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from clubhouse.models.audit_log import AuditLog
from clubhouse.models.profile import ProfileRole
from clubhouse.models.transaction import FinanceTransaction, PaymentMethod, TransactionStatus, TransactionType
from tests.conftest import create_admin, create_member, edit_profile

VALID = {
    "amount": 50,
    "method": "zelle",
    "purpose": "membership",
    "category": "dues",
    "description": "2026 membership",
}


def _record(client, headers, **overrides):
    return client.post("/api/finance/transactions/income", headers=headers, json={**VALID, **overrides})


class TestRecordIncomeCaller:
    def test_unauthenticated(self, client):
        resp = _record(client, {})
        assert resp.status_code == 401
        assert resp.json()["detail"]["code"] == "unauthenticated"

    def test_pending_member_denied(self, client, db):
        _, headers = create_member(client, db, approved=False)
        resp = _record(client, headers)
        assert resp.status_code == 403
        assert resp.json()["detail"]["code"] == "permission-denied"

    def test_suspended_member_denied(self, client, db):
        pid, headers = create_member(client, db)
        edit_profile(db, pid, suspended=True)
        resp = _record(client, headers)
        assert resp.status_code == 401
        assert resp.json()["detail"]["code"] == "unauthenticated"
        assert db.query(FinanceTransaction).count() == 0


class TestRecordIncomeValidation:
    @pytest.mark.parametrize("overrides,field", [
        ({"amount": 0}, "amount"),
        ({"amount": -5}, "amount"),
        ({"amount": 0.001}, "amount"),
        ({"amount": "lots"}, "amount"),
        ({"amount": None}, "amount"),
        ({"method": "bitcoin"}, "method"),
        ({"purpose": "gift"}, "purpose"),
        ({"category": "  "}, "category"),
        ({"description": ""}, "description"),
    ])
    def test_invalid_argument(self, client, db, overrides, field):
        _, headers = create_member(client, db)
        resp = _record(client, headers, **overrides)
        assert resp.status_code == 400
        detail = resp.json()["detail"]
        assert detail["code"] == "invalid-argument"
        assert field in detail["message"]
        assert db.query(FinanceTransaction).count() == 0


class TestRecordIncome:
    def test_zelle_is_pending(self, client, db):
        pid, headers = create_member(client, db)
        resp = _record(client, headers, amount="25.5", payer_name="Ana", metadata={"ref": "Z-1"})
        assert resp.status_code == 201
        data = resp.json()
        assert data["type"] == "income"
        assert data["status"] == "pending"
        assert Decimal(data["amount"]) == Decimal("25.50")
        assert data["payer_id"] == pid
        assert data["payer_name"] == "Ana"
        assert data["metadata"] == {"ref": "Z-1"}
        assert data["fiscal_year"] == datetime.now(timezone.utc).year

    def test_paypal_is_completed(self, client, db):
        _, headers = create_member(client, db)
        assert _record(client, headers, method="paypal").json()["status"] == "completed"

    def test_audit_entry(self, client, db):
        pid, headers = create_member(client, db)
        txn = _record(client, headers).json()
        entry = db.query(AuditLog).filter(AuditLog.action == "record_income_transaction").one()
        assert entry.performed_by == pid
        assert entry.target_id == txn["transaction_id"]
        assert entry.changes["amount"] == "50.00"


class TestFinanceReview:
    def test_member_cannot_list(self, client, db):
        _, headers = create_member(client, db)
        assert client.get("/api/finance/transactions", headers=headers).status_code == 403

    def test_list_filters(self, client, db):
        _, admin_headers = create_admin(client, db)
        _, headers = create_member(client, db)
        _record(client, headers, method="paypal", category="dues")
        _record(client, headers, method="cash", category="donations", purpose="donation")

        all_rows = client.get("/api/finance/transactions", headers=admin_headers).json()
        assert len(all_rows) == 2
        pending = client.get("/api/finance/transactions", headers=admin_headers, params={"status": "pending"}).json()
        assert [r["category"] for r in pending] == ["donations"]
        dues = client.get("/api/finance/transactions", headers=admin_headers, params={"category": "dues"}).json()
        assert [r["method"] for r in dues] == ["paypal"]

    def test_approve(self, client, db):
        admin_id, admin_headers = create_admin(client, db)
        _, headers = create_member(client, db)
        txn = _record(client, headers, method="check").json()

        resp = client.post(f"/api/finance/transactions/{txn['transaction_id']}/approve", headers=admin_headers)
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "completed"
        assert data["approved_by"] == admin_id
        assert data["approved_at"] is not None

        again = client.post(f"/api/finance/transactions/{txn['transaction_id']}/approve", headers=admin_headers)
        assert again.status_code == 400

    def test_summary(self, client, db):
        admin_id, admin_headers = create_admin(client, db)
        _, headers = create_member(client, db)
        _record(client, headers, amount=40, category="dues")
        _record(client, headers, amount=10, category="dues", method="paypal")
        db.add(FinanceTransaction(
            type=TransactionType.expense, category="courts", amount=Decimal("15"), method=PaymentMethod.check,
            status=TransactionStatus.completed, description="Court rental",
            fiscal_year=datetime.now(timezone.utc).year, created_by=admin_id,
        ))
        db.add(FinanceTransaction(
            type=TransactionType.income, category="dues", amount=Decimal("99"), method=PaymentMethod.cash,
            status=TransactionStatus.cancelled, description="Voided",
            fiscal_year=datetime.now(timezone.utc).year, created_by=admin_id,
        ))
        db.commit()

        data = client.get("/api/finance/summary", headers=admin_headers).json()
        assert Decimal(data["total_income"]) == Decimal("50")
        assert Decimal(data["total_expense"]) == Decimal("15")
        assert Decimal(data["net"]) == Decimal("35")
        assert Decimal(data["by_category"]["dues"]["income"]) == Decimal("50")
        assert Decimal(data["by_category"]["courts"]["expense"]) == Decimal("15")


EXPENSE = {
    "amount": "120.00",
    "method": "check",
    "category": "courts",
    "description": "Court rental, March",
}


def _expense(client, headers, **overrides):
    return client.post("/api/finance/transactions/expense", headers=headers, json={**EXPENSE, **overrides})


class TestExpenses:
    def test_member_cannot_record(self, client, db):
        _, headers = create_member(client, db)
        resp = _expense(client, headers)
        assert resp.status_code == 403
        assert db.query(FinanceTransaction).count() == 0

    def test_profile_admin_without_claim_denied(self, client, db):
        pid, headers = create_member(client, db)
        edit_profile(db, pid, role=ProfileRole.admin)
        assert _expense(client, headers).status_code == 403

    def test_record_expense(self, client, db):
        admin_id, admin_headers = create_admin(client, db)
        resp = _expense(
            client, admin_headers, vendor="City Courts", payee="Parks Dept", invoice_number="INV-7",
            receipt_url="https://example.com/r/7", subcategory="rental",
        )
        assert resp.status_code == 201, resp.text
        data = resp.json()
        assert data["type"] == "expense"
        assert data["status"] == "pending"
        assert Decimal(data["amount"]) == Decimal("120.00")
        assert data["vendor"] == "City Courts"
        assert data["payee"] == "Parks Dept"
        assert data["invoice_number"] == "INV-7"
        assert data["receipt_url"] == "https://example.com/r/7"
        assert data["created_by"] == admin_id
        assert data["payer_id"] is None
        assert data["fiscal_year"] == datetime.now(timezone.utc).year

        entry = db.query(AuditLog).filter(AuditLog.action == "record_expense_transaction").one()
        assert entry.performed_by == admin_id
        assert entry.target_id == data["transaction_id"]

    @pytest.mark.parametrize("overrides,field", [
        ({"amount": 0}, "amount"),
        ({"amount": "0.004"}, "amount"),
        ({"method": "barter"}, "method"),
        ({"category": ""}, "category"),
        ({"description": None}, "description"),
    ])
    def test_invalid_argument(self, client, db, overrides, field):
        _, admin_headers = create_admin(client, db)
        resp = _expense(client, admin_headers, **overrides)
        assert resp.status_code == 400
        assert field in resp.json()["detail"]["message"]
        assert db.query(FinanceTransaction).count() == 0


class TestSummaryAndExport:
    def test_summary_includes_recorded_expenses(self, client, db):
        _, admin_headers = create_admin(client, db)
        _, headers = create_member(client, db)
        _record(client, headers, amount=200, category="dues")
        _expense(client, admin_headers, amount=75, category="courts")

        data = client.get("/api/finance/summary", headers=admin_headers).json()
        assert Decimal(data["total_income"]) == Decimal("200")
        assert Decimal(data["total_expense"]) == Decimal("75")
        assert Decimal(data["net"]) == Decimal("125")
        assert Decimal(data["by_category"]["courts"]["expense"]) == Decimal("75")

    def test_summary_defaults_to_current_fiscal_year(self, client, db):
        admin_id, admin_headers = create_admin(client, db)
        this_year = datetime.now(timezone.utc).year
        _expense(client, admin_headers, amount=10)
        db.add(FinanceTransaction(
            type=TransactionType.expense, category="courts", amount=Decimal("500"), method=PaymentMethod.cash,
            status=TransactionStatus.completed, description="Last season",
            fiscal_year=this_year - 1, created_by=admin_id,
        ))
        db.commit()

        current = client.get("/api/finance/summary", headers=admin_headers).json()
        assert current["fiscal_year"] == this_year
        assert Decimal(current["total_expense"]) == Decimal("10")

        previous = client.get("/api/finance/summary", headers=admin_headers,
                              params={"fiscal_year": this_year - 1}).json()
        assert Decimal(previous["total_expense"]) == Decimal("500")

    def test_export_csv(self, client, db):
        _, admin_headers = create_admin(client, db)
        _, headers = create_member(client, db)
        _record(client, headers, amount=30, payer_name="Ana", description='Dues "spring"')
        _expense(client, admin_headers, payee="Parks Dept", invoice_number="INV-9")

        resp = client.get("/api/finance/export", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/csv")
        rows = list(csv.reader(io.StringIO(resp.text)))
        assert rows[0][:3] == ["Date", "Type", "Category"]
        by_type = {row[1]: row for row in rows[1:]}
        assert by_type["income"][4] == 'Dues "spring"'
        assert by_type["income"][5] == "30.00"
        assert by_type["income"][8] == "Ana"
        assert by_type["expense"][8] == "Parks Dept"
        assert by_type["expense"][10] == "INV-9"

    def test_member_cannot_export(self, client, db):
        _, headers = create_member(client, db)
        assert client.get("/api/finance/export", headers=headers).status_code == 403
