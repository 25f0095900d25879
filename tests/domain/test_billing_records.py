"""
Tests for the typed tenant and billing record constructors.
"""

from datetime import date
from decimal import Decimal

import pytest

from housing_kernel.domain.records import (
    BillingRecord,
    IssuedState,
    PaymentState,
    RecordCategory,
    Tenant,
)
from housing_kernel.domain.tenant_lifecycle import TenantStatus
from housing_kernel.exceptions import MalformedRecordError, UnknownStatusError


class TestPaymentStateParse:

    @pytest.mark.parametrize("value", ["paid", "PAID", " Paid ", PaymentState.PAID])
    def test_paid(self, value):
        assert PaymentState.parse(value) is PaymentState.PAID

    @pytest.mark.parametrize("value", ["pending", "overdue", "due", None, "", 3])
    def test_everything_else_is_owed(self, value):
        assert PaymentState.parse(value) is PaymentState.UNPAID


class TestTenantFromDocument:

    def test_canonical_fields(self):
        tenant = Tenant.from_document({
            "id": "emp-1",
            "monthly_rate": "4200",
            "lifecycle_status": "pending_resign",
            "departure_date": "2025-10-31",
        })

        assert tenant.monthly_rate == Decimal("4200")
        assert tenant.lifecycle_status is TenantStatus.PENDING_RESIGN
        assert tenant.departure_date == date(2025, 10, 31)

    def test_rate_falls_back_through_legacy_keys(self):
        tenant = Tenant.from_document({"id": 7, "monthly_rate": "", "rent": "3,800"})

        assert tenant.tenant_id == "7"
        assert tenant.monthly_rate == Decimal("3800")

    def test_missing_status_is_pending_assignment(self):
        tenant = Tenant.from_document({"id": "emp-1"})

        assert tenant.lifecycle_status is TenantStatus.PENDING_ASSIGNMENT
        assert tenant.monthly_rate is None

    def test_unknown_status(self):
        with pytest.raises(UnknownStatusError):
            Tenant.from_document({"id": "emp-1", "status": "archived"})

    def test_malformed_date(self):
        with pytest.raises(MalformedRecordError) as exc_info:
            Tenant.from_document({"id": "emp-1", "arrival_date": "soon"})

        assert exc_info.value.field == "arrival_date"
        assert exc_info.value.record_id == "emp-1"


class TestBillingRecordFromDocument:

    def test_canonical_fields(self):
        record = BillingRecord.from_document({
            "id": "inv-1",
            "tenant_id": "emp-1",
            "coverage_start": date(2025, 9, 1),
            "coverage_end": date(2025, 9, 30),
            "face_amount": Decimal("3500"),
            "payment_state": "paid",
            "issued_state": IssuedState.ISSUED,
        })

        assert record.is_paid
        assert record.is_issued
        assert record.has_coverage
        assert record.category is RecordCategory.RENT

    def test_legacy_field_names(self):
        record = BillingRecord.from_document({
            "id": "inv-1",
            "employee_id": "emp-1",
            "start_date": "2025-09-01",
            "end_date": "2025-09-30",
            "amount": "HK$3,500",
            "status": "paid",
            "is_issued": True,
        })

        assert record.tenant_id == "emp-1"
        assert record.coverage_start == date(2025, 9, 1)
        assert record.face_amount == Decimal("3500")
        assert record.payment_state is PaymentState.PAID
        assert record.issued_state is IssuedState.ISSUED

    def test_truthy_non_boolean_issued_flag_is_draft(self):
        record = BillingRecord.from_document({"id": "inv-1", "is_issued": "yes"})

        assert record.issued_state is IssuedState.DRAFT

    def test_missing_coverage(self):
        record = BillingRecord.from_document({"id": "inv-1", "tenant_id": "emp-1"})

        assert not record.has_coverage
        assert record.face_amount is None

    def test_category_is_passed_through(self):
        record = BillingRecord.from_document(
            {"id": "inv-1"}, category=RecordCategory.DEPOSIT
        )

        assert record.category is RecordCategory.DEPOSIT
        assert record.tenant_id == ""
