from decimal import Decimal

from django.core.exceptions import ValidationError
from django.test import TestCase

from ..exceptions import ReferentialError, StateConflictError
from ..models import Category, Invoice, TaxRate
from ..services.catalog import calculate_tax, category_tree, tax_summary
from ..services.documents import create_document, set_status
from .factories import (make_customer, make_item, make_organization,
                        make_tax_rate, make_vendor)


class CounterpartyRulesTests(TestCase):
    def setUp(self):
        self.org = make_organization()

    def test_gstin_and_pan_formats(self):
        customer = make_customer(self.org, gstin="27AAPFU0939F1ZV",
                                 pan_number="AAPFU0939F")
        self.assertEqual(customer.gstin, "27AAPFU0939F1ZV")
        with self.assertRaises(ValidationError):
            make_customer(self.org, gstin="27AAPFU0939F1Z")
        with self.assertRaises(ValidationError):
            make_vendor(self.org, pan_number="1234567890")

    def test_email_unique_per_organization(self):
        make_customer(self.org, email="a@example.com")
        with self.assertRaises(ValidationError):
            make_customer(self.org, email="a@example.com")
        # Another organization may reuse it
        make_customer(make_organization("Other"), email="a@example.com")

    def test_customer_with_invoices_cannot_be_deleted(self):
        customer = make_customer(self.org)
        create_document(Invoice, self.org, {
            "customer_id": str(customer.pk), "date": "2025-09-18"})
        with self.assertRaises(StateConflictError):
            customer.delete()


class CategoryTests(TestCase):
    def setUp(self):
        self.org = make_organization()

    def category(self, name, type="item", parent=None):
        return Category.objects.create(
            organization=self.org, name=name, type=type, parent=parent)

    def test_parent_rules(self):
        income = self.category("Sales", type="income")
        with self.assertRaises(ValidationError):
            self.category("Widgets", parent=income)

        foreign = Category.objects.create(
            organization=make_organization("Other"), name="Foreign", type="item")
        with self.assertRaises(ValidationError):
            self.category("Gadgets", parent=foreign)

        root = self.category("Hardware")
        root.parent = root
        with self.assertRaises(ValidationError):
            root.save()

    def test_name_unique_per_type(self):
        self.category("Misc")
        self.category("Misc", type="expense")
        with self.assertRaises(ValidationError):
            self.category("Misc")

    def test_tree(self):
        hardware = self.category("Hardware")
        tools = self.category("Tools", parent=hardware)
        self.category("Services")
        make_item(self.org, category=tools)

        tree = category_tree(self.org, "item")
        self.assertEqual([node["name"] for node in tree], ["Hardware", "Services"])
        children = tree[0]["children"]
        self.assertEqual(children[0]["name"], "Tools")
        self.assertEqual(children[0]["item_count"], 1)

        with self.assertRaises(ValidationError):
            category_tree(self.org, "assets")

    def test_delete_guards(self):
        hardware = self.category("Hardware")
        tools = self.category("Tools", parent=hardware)
        with self.assertRaises(StateConflictError):
            hardware.delete()
        make_item(self.org, category=tools)
        with self.assertRaises(StateConflictError):
            tools.delete()


class TaxRateTests(TestCase):
    def setUp(self):
        self.org = make_organization()
        self.gst = make_tax_rate(self.org, "18.00", name="GST 18%")

    def test_rate_bounds(self):
        with self.assertRaises(ValidationError):
            make_tax_rate(self.org, "100.01")
        with self.assertRaises(ValidationError):
            make_tax_rate(self.org, "-1")

    def test_calculate(self):
        result = calculate_tax(self.org, "250", str(self.gst.pk))
        self.assertEqual(result["subtotal"], Decimal("250.00"))
        self.assertEqual(result["tax_amount"], Decimal("45.00"))
        self.assertEqual(result["total"], Decimal("295.00"))

        flat = make_tax_rate(self.org, "12.50", type=TaxRate.Type.FIXED)
        self.assertEqual(
            calculate_tax(self.org, "999", str(flat.pk))["tax_amount"],
            Decimal("12.50"))

    def test_calculate_rejects_foreign_rate(self):
        other = make_organization("Other")
        with self.assertRaises(ReferentialError):
            calculate_tax(other, "100", str(self.gst.pk))

    def test_summary_skips_cancelled_invoices(self):
        customer = make_customer(self.org)

        def invoice(date, price):
            return create_document(Invoice, self.org, {
                "customer_id": str(customer.pk),
                "date": date,
                "line_items": [{
                    "description": "Consulting", "quantity": 1,
                    "price": price, "tax_rate_id": str(self.gst.pk),
                }],
            })

        invoice("2025-08-01", "100.00")
        invoice("2025-09-01", "200.00")
        cancelled = invoice("2025-09-02", "1000.00")
        set_status(Invoice, self.org, cancelled.pk, "cancelled")

        rows = {row["name"]: row for row in tax_summary(self.org)}
        self.assertEqual(rows["GST 18%"]["transaction_count"], 2)
        self.assertEqual(rows["GST 18%"]["total_tax_collected"], Decimal("54.00"))
        self.assertEqual(rows["GST 18%"]["total_taxable_amount"], Decimal("300.00"))

        september = {r["name"]: r for r in tax_summary(self.org, "2025-09-01")}
        self.assertEqual(september["GST 18%"]["total_tax_collected"], Decimal("36.00"))

    def test_rate_in_use_cannot_be_deleted(self):
        make_item(self.org, tax_rate=self.gst)
        with self.assertRaises(StateConflictError):
            self.gst.delete()
