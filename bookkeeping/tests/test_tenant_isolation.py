from decimal import Decimal

from django.test import TestCase

from ..exceptions import ReferentialError
from ..models import Customer, Invoice
from ..services.documents import create_document, update_document
from ..services.validation import fetch
from .factories import lines, make_customer, make_item, make_organization


class TenantIsolationManagerTests(TestCase):
    def setUp(self):
        self.org_a = make_organization("Organization A")
        self.org_b = make_organization("Organization B")
        self.customer_a = make_customer(self.org_a)
        self.customer_b = make_customer(self.org_b)

        self.inv_a = create_document(Invoice, self.org_a, {
            "customer_id": str(self.customer_a.pk), "date": "2025-09-18",
            "line_items": lines((1, "200.00", "0")),
        })
        self.inv_b = create_document(Invoice, self.org_b, {
            "customer_id": str(self.customer_b.pk), "date": "2025-09-18",
            "line_items": lines((1, "100.00", "0")),
        })

    def test_for_organization_returns_only_that_organization_objects(self):
        self.assertListEqual(
            list(Invoice.objects.for_organization(self.org_a)
                 .values_list("pk", flat=True)),
            [self.inv_a.pk],
        )
        self.assertListEqual(
            list(Invoice.objects.for_organization(self.org_b)
                 .values_list("pk", flat=True)),
            [self.inv_b.pk],
        )

    def test_get_other_organization_object_raises_does_not_exist(self):
        with self.assertRaises(Invoice.DoesNotExist):
            fetch(Invoice, self.org_a, self.inv_b.pk)
        with self.assertRaises(Customer.DoesNotExist):
            fetch(Customer, self.org_a, "not-a-uuid")

    def test_update_through_other_organization_is_not_found(self):
        with self.assertRaises(Invoice.DoesNotExist):
            update_document(Invoice, self.org_a, self.inv_b.pk, {"notes": "x"})
        self.inv_b.refresh_from_db()
        self.assertEqual(self.inv_b.notes, "")

    def test_line_items_cannot_reference_other_organization_items(self):
        foreign_item = make_item(self.org_b)
        with self.assertRaises(ReferentialError):
            create_document(Invoice, self.org_a, {
                "customer_id": str(self.customer_a.pk), "date": "2025-09-18",
                "line_items": [{"item_id": str(foreign_item.pk), "quantity": 1}],
            })

    def test_numbering_does_not_leak_between_organizations(self):
        self.assertEqual(self.inv_a.invoice_number, "INV-0001")
        self.assertEqual(self.inv_b.invoice_number, "INV-0001")
        self.assertEqual(self.inv_a.total, Decimal("200.00"))
