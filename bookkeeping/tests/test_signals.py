from django.db.models import ProtectedError
from django.test import TestCase

from ..exceptions import StateConflictError
from ..models import Bill, Invoice
from ..services.documents import create_document, set_status
from ..services.payment import create_payment
from .factories import lines, make_customer, make_organization, make_vendor


class DeleteGuardSignalTests(TestCase):
    """Direct ORM deletes (admin, shell) are guarded too."""

    def setUp(self):
        self.org = make_organization()
        self.customer = make_customer(self.org)

    def test_invoice_with_payment_blocked(self):
        invoice = create_document(Invoice, self.org, {
            "customer_id": str(self.customer.pk), "date": "2025-09-18",
            "line_items": lines((1, "50.00", "0")),
        })
        create_payment(self.org, {
            "direction": "incoming", "invoice_id": str(invoice.pk),
            "amount": "20.00", "date": "2025-09-19",
        })
        with self.assertRaises(ProtectedError):
            invoice.delete()

    def test_paid_bill_blocked(self):
        vendor = make_vendor(self.org)
        bill = create_document(Bill, self.org, {
            "vendor_id": str(vendor.pk), "date": "2025-09-18",
            "line_items": lines((1, "50.00", "0")),
        })
        bill = set_status(Bill, self.org, bill.pk, "paid", reason="paid in cash")
        with self.assertRaises(StateConflictError):
            bill.delete()

    def test_unpaid_invoice_deletes(self):
        invoice = create_document(Invoice, self.org, {
            "customer_id": str(self.customer.pk), "date": "2025-09-18"})
        invoice.delete()
        self.assertFalse(Invoice.objects.exists())
