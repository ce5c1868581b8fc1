import datetime
from io import StringIO

from django.core.management import call_command
from django.test import TestCase

from ..models import Bill, BillStatus, Invoice, InvoiceStatus
from ..services.documents import create_document, mark_overdue, set_status
from ..tasks import mark_overdue_documents
from .factories import lines, make_customer, make_organization, make_vendor


class OverdueSweepTests(TestCase):
    def setUp(self):
        self.org = make_organization()
        customer = make_customer(self.org)
        vendor = make_vendor(self.org)

        def invoice(due, status="sent"):
            doc = create_document(Invoice, self.org, {
                "customer_id": str(customer.pk), "date": "2025-08-01",
                "due_date": due, "line_items": lines((1, "10.00", "0")),
            })
            if status != "draft":
                set_status(Invoice, self.org, doc.pk, status)
            return doc

        self.late = invoice("2025-09-01")
        self.not_due = invoice("2025-10-01")
        self.draft = invoice("2025-09-01", status="draft")
        self.bill = create_document(Bill, self.org, {
            "vendor_id": str(vendor.pk), "date": "2025-08-01",
            "due_date": "2025-08-31", "line_items": lines((1, "5.00", "0")),
        })
        set_status(Bill, self.org, self.bill.pk, "received")

    def status_of(self, document):
        document.refresh_from_db()
        return document.status

    def test_mark_overdue(self):
        changed = mark_overdue(datetime.date(2025, 9, 18))
        self.assertEqual(changed, {"Invoice": 1, "Bill": 1})
        self.assertEqual(self.status_of(self.late), InvoiceStatus.OVERDUE)
        self.assertEqual(self.status_of(self.not_due), InvoiceStatus.SENT)
        self.assertEqual(self.status_of(self.draft), InvoiceStatus.DRAFT)
        self.assertEqual(self.status_of(self.bill), BillStatus.OVERDUE)

        # Nothing left to flip on a second run
        self.assertEqual(mark_overdue(datetime.date(2025, 9, 18)),
                         {"Invoice": 0, "Bill": 0})

    def test_management_command(self):
        out = StringIO()
        call_command("mark_overdue", "--date", "2025-09-18", stdout=out)
        self.assertIn("Invoice: 1 marked overdue", out.getvalue())
        self.assertEqual(self.status_of(self.late), InvoiceStatus.OVERDUE)

    def test_celery_task_runs_inline(self):
        # Everything is overdue by now
        changed = mark_overdue_documents.apply().get()
        self.assertEqual(changed, {"Invoice": 2, "Bill": 1})
