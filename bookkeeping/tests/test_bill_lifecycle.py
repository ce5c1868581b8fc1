import datetime
from decimal import Decimal

from django.test import TestCase

from ..exceptions import StateConflictError
from ..models import Bill, BillStatus
from ..services.documents import (create_document, delete_document,
                                  set_status, update_document)
from ..services.payment import create_payment
from .factories import lines, make_organization, make_vendor


class BillLifecycleTests(TestCase):
    def setUp(self):
        self.org = make_organization()
        self.vendor = make_vendor(self.org, payment_terms=45)

    def make_bill(self, **extra):
        data = {
            "vendor_id": str(self.vendor.pk),
            "date": "2025-09-01",
            "reference_number": "PW-1001",
            "line_items": lines((3, "40.00", "21.60")),
        }
        data.update(extra)
        return create_document(Bill, self.org, data)

    def test_create(self):
        bill = self.make_bill()
        self.assertEqual(bill.bill_number, "BILL-0001")
        self.assertEqual(bill.reference_number, "PW-1001")
        self.assertEqual(bill.total, Decimal("141.60"))
        self.assertEqual(bill.balance_due, Decimal("141.60"))
        self.assertEqual(bill.due_date, datetime.date(2025, 10, 16))

    def test_received_then_paid_then_frozen(self):
        bill = self.make_bill()
        set_status(Bill, self.org, bill.pk, "received")
        create_payment(self.org, {
            "direction": "outgoing", "bill_id": str(bill.pk),
            "amount": "141.60", "date": "2025-09-15",
        })
        bill.refresh_from_db()
        self.assertEqual(bill.status, BillStatus.PAID)
        with self.assertRaises(StateConflictError):
            update_document(Bill, self.org, bill.pk, {"reference_number": "X"})
        with self.assertRaises(StateConflictError):
            delete_document(Bill, self.org, bill.pk)

    def test_bill_statuses_are_their_own(self):
        bill = self.make_bill()
        with self.assertRaises(StateConflictError):
            set_status(Bill, self.org, bill.pk, "overdue")
        bill = set_status(Bill, self.org, bill.pk, "received")
        self.assertEqual(bill.status, BillStatus.RECEIVED)

    def test_cancelled_bill_can_return_to_draft(self):
        bill = self.make_bill()
        set_status(Bill, self.org, bill.pk, "cancelled")
        bill = set_status(Bill, self.org, bill.pk, "draft")
        self.assertEqual(bill.status, BillStatus.DRAFT)
