from decimal import Decimal

from django.test import TestCase

from ..exceptions import StateConflictError
from ..models import Invoice, Item, SalesOrder, SalesOrderStatus
from ..services.documents import (create_document, delete_document,
                                  set_status)
from .factories import make_customer, make_item, make_organization


class SalesOrderTests(TestCase):
    def setUp(self):
        self.org = make_organization()
        self.customer = make_customer(self.org)
        self.widget = make_item(self.org, quantity=Decimal("10"))
        self.service = make_item(self.org, type=Item.Type.SERVICE)

    def order(self, status="draft", quantity=3):
        return create_document(SalesOrder, self.org, {
            "customer_id": str(self.customer.pk),
            "date": "2025-09-18",
            "status": status,
            "line_items": [
                {"item_id": str(self.widget.pk), "quantity": quantity},
                {"item_id": str(self.service.pk), "quantity": 1},
            ],
        })

    def test_numbers_and_totals(self):
        order = self.order()
        self.assertEqual(order.order_number, "SO-0001")
        self.assertEqual(order.total, Decimal("400.00"))
        self.widget.refresh_from_db()
        self.assertEqual(self.widget.quantity, Decimal("10"))

    def test_created_delivered_takes_stock(self):
        self.order(status="delivered", quantity=4)
        self.widget.refresh_from_db()
        self.assertEqual(self.widget.quantity, Decimal("6"))

    def test_delivery_beyond_stock_rolls_back(self):
        with self.assertRaises(StateConflictError):
            self.order(status="delivered", quantity=11)
        self.assertFalse(SalesOrder.objects.exists())
        self.widget.refresh_from_db()
        self.assertEqual(self.widget.quantity, Decimal("10"))

    def test_workflow(self):
        order = self.order()
        for status in ("open", "confirmed", "delivered"):
            order = set_status(SalesOrder, self.org, order.pk, status)
        self.assertEqual(order.status, SalesOrderStatus.DELIVERED)
        with self.assertRaises(StateConflictError):
            set_status(SalesOrder, self.org, order.pk, "cancelled")

    def test_invoiced_order_cannot_be_deleted(self):
        order = self.order()
        create_document(Invoice, self.org, {
            "customer_id": str(self.customer.pk),
            "sales_order_id": str(order.pk),
            "date": "2025-09-18",
        })
        with self.assertRaises(StateConflictError):
            delete_document(SalesOrder, self.org, order.pk)

    def test_delete_order(self):
        order = self.order()
        delete_document(SalesOrder, self.org, order.pk)
        self.assertFalse(SalesOrder.objects.exists())
