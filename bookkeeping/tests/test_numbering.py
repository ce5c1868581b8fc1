import datetime
from decimal import Decimal

import pytest
from django.db import IntegrityError, transaction
from django.test import TestCase

from ..exceptions import DocumentNumberError
from ..models import Invoice, Payment
from ..services.documents import create_document
from ..services.numbering import format_number, next_document_number, parse_number
from .factories import lines, make_customer, make_organization


def test_format_number_pads_to_four_digits():
    assert format_number("INV", 1) == "INV-0001"
    assert format_number("INV", 10000) == "INV-10000"


def test_parse_number_rejects_other_prefix_and_garbage():
    assert parse_number("BILL-0042", "BILL") == 42
    with pytest.raises(DocumentNumberError):
        parse_number("INV-0042", "BILL")
    with pytest.raises(DocumentNumberError):
        parse_number("INV-ABCDE", "INV")


class DocumentNumberingTests(TestCase):
    def setUp(self):
        self.org = make_organization()
        self.customer = make_customer(self.org)

    def create_invoice(self, org=None, customer=None):
        return create_document(Invoice, org or self.org, {
            "customer_id": str((customer or self.customer).pk),
            "date": "2025-09-18",
            "line_items": lines((1, "10.00", 0)),
        })

    def test_first_number_is_0001(self):
        self.assertEqual(next_document_number(self.org, Invoice), "INV-0001")
        self.assertEqual(next_document_number(self.org, Payment), "PAY-0001")

    def test_sequential_invoices(self):
        numbers = [self.create_invoice().invoice_number for _ in range(3)]
        self.assertEqual(numbers, ["INV-0001", "INV-0002", "INV-0003"])

    def test_sequences_are_per_organization(self):
        self.create_invoice()
        self.create_invoice()
        other = make_organization("Other Co")
        invoice = self.create_invoice(other, make_customer(other))
        self.assertEqual(invoice.invoice_number, "INV-0001")

    def test_longer_number_wins_over_lexically_larger(self):
        invoice = self.create_invoice()
        Invoice.objects.filter(pk=invoice.pk).update(invoice_number="INV-9999")
        second = self.create_invoice()
        Invoice.objects.filter(pk=second.pk).update(invoice_number="INV-10000")
        self.assertEqual(next_document_number(self.org, Invoice), "INV-10001")

    def test_malformed_stored_number_fails_loudly(self):
        invoice = self.create_invoice()
        Invoice.objects.filter(pk=invoice.pk).update(invoice_number="INV-ABCDE")
        with self.assertRaises(DocumentNumberError):
            self.create_invoice()
        self.assertEqual(Invoice.objects.for_organization(self.org).count(), 1)

    def test_duplicate_number_rejected_by_constraint(self):
        invoice = self.create_invoice()
        with self.assertRaises(IntegrityError), transaction.atomic():
            Invoice.objects.create(
                organization=self.org,
                customer=self.customer,
                invoice_number=invoice.invoice_number,
                date=datetime.date(2025, 9, 18),
                total=Decimal("0.00"),
            )
