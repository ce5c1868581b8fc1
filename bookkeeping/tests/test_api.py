import json
from decimal import Decimal
from unittest import mock

import pytest
from django.test import Client, TestCase, override_settings

from ..models import Bill, Category, Invoice, Item, Membership, Payment
from ..services.documents import create_document, set_status
from .factories import (lines, make_customer, make_item, make_organization,
                        make_user, make_vendor)


class ApiTestCase(TestCase):
    role = Membership.Role.OWNER

    def setUp(self):
        self.org = make_organization()
        self.user = make_user(self.org, role=self.role)
        self.client = Client()
        self.client.force_login(self.user)

    def send(self, method, url, data=None):
        return getattr(self.client, method)(
            url, data=json.dumps(data or {}), content_type="application/json")


class AuthApiTests(TestCase):
    def test_register_login_me_logout(self):
        client = Client()
        response = client.post("/api/auth/register/", data=json.dumps({
            "username": "asha", "email": "asha@example.com",
            "password": "s3cret-pass", "organization_name": "Asha Stores",
        }), content_type="application/json")
        self.assertEqual(response.status_code, 201)
        body = response.json()
        self.assertEqual(body["role"], "owner")
        self.assertEqual(body["organization"]["slug"], "asha-stores")

        me = client.get("/api/auth/me/").json()
        self.assertEqual(me["username"], "asha")

        client.post("/api/auth/logout/")
        self.assertEqual(client.get("/api/auth/me/").status_code, 401)

        bad = client.post("/api/auth/login/", data=json.dumps(
            {"username": "asha", "password": "wrong"}),
            content_type="application/json")
        self.assertEqual(bad.status_code, 401)
        self.assertEqual(bad.json(), {"error": "Invalid credentials"})

        ok = client.post("/api/auth/login/", data=json.dumps(
            {"username": "asha", "password": "s3cret-pass"}),
            content_type="application/json")
        self.assertEqual(ok.status_code, 200)

    def test_anonymous_is_401(self):
        self.assertEqual(Client().get("/api/customers/").status_code, 401)

    def test_user_without_membership_is_403(self):
        client = Client()
        client.force_login(make_user())
        self.assertEqual(client.get("/api/customers/").status_code, 403)

    def test_switch_organization(self):
        first = make_organization("First")
        second = make_organization("Second")
        user = make_user(first)
        Membership.objects.create(user=user, organization=second,
                                  role=Membership.Role.STAFF)
        make_customer(second, name="Only in second")
        client = Client()
        client.force_login(user)

        self.assertEqual(client.get("/api/customers/").json()["total"], 0)
        response = client.post(
            "/api/auth/switch-organization/",
            data=json.dumps({"organization_id": str(second.pk)}),
            content_type="application/json")
        self.assertEqual(response.status_code, 200)
        names = [c["name"] for c in client.get("/api/customers/").json()["data"]]
        self.assertEqual(names, ["Only in second"])

        outsider = make_organization("Outsider")
        response = client.post(
            "/api/auth/switch-organization/",
            data=json.dumps({"organization_id": str(outsider.pk)}),
            content_type="application/json")
        self.assertEqual(response.status_code, 403)

    def test_change_password(self):
        user = make_user(make_organization(), username="ravi")
        client = Client()
        client.force_login(user)
        url = "/api/auth/change-password/"

        wrong = client.post(url, data=json.dumps({
            "current_password": "nope", "new_password": "n3w-secret"}),
            content_type="application/json")
        self.assertEqual(wrong.status_code, 400)
        self.assertIn("current_password", wrong.json()["details"])

        short = client.post(url, data=json.dumps({
            "current_password": "secret123", "new_password": "abc"}),
            content_type="application/json")
        self.assertEqual(short.status_code, 400)

        ok = client.post(url, data=json.dumps({
            "current_password": "secret123", "new_password": "n3w-secret"}),
            content_type="application/json")
        self.assertEqual(ok.status_code, 200)
        # Session survives the password change
        self.assertEqual(client.get("/api/auth/me/").status_code, 200)
        user.refresh_from_db()
        self.assertTrue(user.check_password("n3w-secret"))

    def test_change_password_requires_login(self):
        response = Client().post(
            "/api/auth/change-password/", data=json.dumps({
                "current_password": "a", "new_password": "b"}),
            content_type="application/json")
        self.assertEqual(response.status_code, 401)


class CustomerApiTests(ApiTestCase):
    def test_crud(self):
        response = self.send("post", "/api/customers/", {
            "name": "Acme", "email": "Billing@Acme.example",
            "gstin": "27aapfu0939f1zv",
        })
        self.assertEqual(response.status_code, 201)
        customer = response.json()
        self.assertEqual(customer["gstin"], "27AAPFU0939F1ZV")
        self.assertEqual(customer["email"], "billing@acme.example")

        url = f"/api/customers/{customer['id']}/"
        response = self.send("patch", url, {"payment_terms": 45})
        self.assertEqual(response.json()["payment_terms"], 45)

        self.assertEqual(self.client.get(url).json()["name"], "Acme")
        self.assertEqual(self.client.delete(url).status_code, 200)
        self.assertEqual(self.client.get(url).status_code, 404)

    def test_validation_errors(self):
        response = self.send("post", "/api/customers/", {"name": "No email"})
        self.assertEqual(response.status_code, 400)
        self.assertIn("email", response.json()["details"])

        response = self.send("post", "/api/customers/", {
            "name": "Bad", "email": "bad@example.com", "gstin": "12345"})
        self.assertEqual(response.status_code, 400)

    def test_pagination_and_search(self):
        for n in range(12):
            make_customer(self.org, name=f"Client {n:02d}")
        make_customer(self.org, name="Zenith Traders")

        page = self.client.get("/api/customers/?page=2&limit=5").json()
        self.assertEqual(page["total"], 13)
        self.assertEqual(page["totalPages"], 3)
        self.assertEqual(page["page"], 2)
        self.assertEqual(len(page["data"]), 5)

        found = self.client.get("/api/customers/?search=zenith").json()
        self.assertEqual([c["name"] for c in found["data"]], ["Zenith Traders"])

    @override_settings(BOOKS_MAX_PAGE_SIZE=3)
    def test_limit_is_capped(self):
        for _ in range(5):
            make_customer(self.org)
        page = self.client.get("/api/customers/?limit=50").json()
        self.assertEqual(len(page["data"]), 3)

    def test_other_organization_customer_is_404(self):
        foreign = make_customer(make_organization("Other"))
        self.assertEqual(
            self.client.get(f"/api/customers/{foreign.pk}/").status_code, 404)

    def test_delete_with_invoices_is_409(self):
        customer = make_customer(self.org)
        self.send("post", "/api/invoices/", {
            "customer_id": str(customer.pk), "date": "2025-09-18"})
        response = self.client.delete(f"/api/customers/{customer.pk}/")
        self.assertEqual(response.status_code, 409)


class ViewerApiTests(ApiTestCase):
    role = Membership.Role.VIEWER

    def test_viewer_reads_but_cannot_write(self):
        self.assertEqual(self.client.get("/api/customers/").status_code, 200)
        response = self.send("post", "/api/customers/", {
            "name": "Acme", "email": "a@example.com"})
        self.assertEqual(response.status_code, 403)


class InvoiceApiTests(ApiTestCase):
    def setUp(self):
        super().setUp()
        self.customer = make_customer(self.org)

    def create_invoice(self):
        response = self.send("post", "/api/invoices/", {
            "customer_id": str(self.customer.pk),
            "date": "2025-09-18",
            "line_items": lines((2, 100, 18), (1, 50, 9)),
        })
        self.assertEqual(response.status_code, 201)
        return response.json()

    def test_create_and_pay(self):
        invoice = self.create_invoice()
        self.assertEqual(invoice["invoice_number"], "INV-0001")
        self.assertEqual(invoice["total"], "277.00")
        self.assertEqual(invoice["balance_due"], "277.00")
        self.assertEqual(len(invoice["line_items"]), 2)

        response = self.send("post", "/api/payments/", {
            "direction": "incoming", "invoice_id": invoice["id"],
            "amount": 500, "date": "2025-09-20",
        })
        self.assertEqual(response.status_code, 409)

        response = self.send("post", "/api/payments/", {
            "direction": "incoming", "invoice_id": invoice["id"],
            "amount": 277, "date": "2025-09-20",
        })
        self.assertEqual(response.status_code, 201)

        detail = self.client.get(f"/api/invoices/{invoice['id']}/").json()
        self.assertEqual(detail["status"], "paid")
        self.assertEqual(detail["balance_due"], "0.00")
        self.assertEqual(len(detail["payments"]), 1)

        response = self.send("put", f"/api/invoices/{invoice['id']}/", {"notes": "x"})
        self.assertEqual(response.status_code, 409)
        self.assertIn("error", response.json())

    def test_status_endpoint(self):
        invoice = self.create_invoice()
        url = f"/api/invoices/{invoice['id']}/status/"
        self.assertEqual(self.send("patch", url, {"status": "sent"}).status_code, 200)
        self.assertEqual(self.send("patch", url, {"status": "draft"}).status_code, 200)
        self.assertEqual(
            self.send("patch", url, {"status": "overdue"}).status_code, 409)
        self.assertEqual(
            self.send("patch", url, {"status": "paid"}).status_code, 400)

    def test_filters_and_summary(self):
        self.create_invoice()
        other = make_customer(self.org)
        self.send("post", "/api/invoices/", {
            "customer_id": str(other.pk), "date": "2025-07-01"})

        by_customer = self.client.get(
            f"/api/invoices/?customer_id={self.customer.pk}").json()
        self.assertEqual(by_customer["total"], 1)
        by_date = self.client.get("/api/invoices/?date_from=2025-09-01").json()
        self.assertEqual(by_date["total"], 1)
        self.assertEqual(
            self.client.get("/api/invoices/?date_from=nope").status_code, 400)

        summary = self.client.get("/api/invoices/stats/summary/?period=year")
        self.assertEqual(summary.status_code, 200)
        self.assertIn("by_status", summary.json())

    def test_unknown_customer_is_400(self):
        response = self.send("post", "/api/invoices/", {
            "customer_id": "00000000-0000-0000-0000-000000000000",
            "date": "2025-09-18"})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "Customer not found")
        self.assertFalse(Invoice.objects.exists())

    def test_malformed_json_is_400(self):
        response = self.client.post(
            "/api/invoices/", data="{not json", content_type="application/json")
        self.assertEqual(response.status_code, 400)

    def test_method_not_allowed(self):
        self.assertEqual(self.client.delete("/api/invoices/").status_code, 405)

    def test_oversized_price_is_400(self):
        response = self.send("post", "/api/invoices/", {
            "customer_id": str(self.customer.pk),
            "date": "2025-09-18",
            "line_items": [{"description": "Huge", "quantity": 1,
                            "price": "1e30"}],
        })
        self.assertEqual(response.status_code, 400)
        self.assertIn("line_items[0].price", response.json()["details"])
        self.assertFalse(Invoice.objects.exists())

    def test_line_total_beyond_storage_is_400(self):
        response = self.send("post", "/api/invoices/", {
            "customer_id": str(self.customer.pk),
            "date": "2025-09-18",
            "line_items": [{"description": "Bulk", "quantity": "9999999999",
                            "price": "9999999999999"}],
        })
        self.assertEqual(response.status_code, 400)
        self.assertFalse(Invoice.objects.exists())

    def test_extra_decimal_places_are_rejected_not_rounded(self):
        response = self.send("post", "/api/invoices/", {
            "customer_id": str(self.customer.pk),
            "date": "2025-09-18",
            "line_items": [{"description": "Odd", "quantity": "1.00001",
                            "price": "10"}],
        })
        self.assertEqual(response.status_code, 400)
        self.assertFalse(Invoice.objects.exists())

        invoice = self.create_invoice()
        for amount in ("100.005", "1e30"):
            response = self.send("post", "/api/payments/", {
                "direction": "incoming", "invoice_id": invoice["id"],
                "amount": amount, "date": "2025-09-20",
            })
            self.assertEqual(response.status_code, 400, amount)
        self.assertFalse(Payment.objects.exists())
        detail = self.client.get(f"/api/invoices/{invoice['id']}/").json()
        self.assertEqual(detail["balance_due"], "277.00")

    def test_duplicate_number_is_500(self):
        self.create_invoice()
        with mock.patch(
            "bookkeeping.services.documents.next_document_number",
            return_value="INV-0001",
        ):
            response = self.send("post", "/api/invoices/", {
                "customer_id": str(self.customer.pk), "date": "2025-09-19"})
        self.assertEqual(response.status_code, 500)
        self.assertEqual(
            response.json(), {"error": "Internal error, the change was not saved"})
        self.assertEqual(Invoice.objects.count(), 1)


class CategoryApiTests(ApiTestCase):
    def test_stats(self):
        category = Category.objects.create(
            organization=self.org, name="Hardware", type=Category.Type.ITEM)
        Category.objects.create(organization=self.org, name="Fasteners",
                                type=Category.Type.ITEM, parent=category)
        item = make_item(self.org, category=category)
        make_item(self.org, category=category, is_active=False)
        vendor = make_vendor(self.org)
        for quantity in (2, 5):
            create_document(Bill, self.org, {
                "vendor_id": str(vendor.pk), "date": "2025-09-01",
                "line_items": [{"item_id": str(item.pk), "quantity": quantity,
                                "price": "150.00", "tax": "0"}],
            })
        cancelled = Bill.objects.get(total=Decimal("750.00"))
        set_status(Bill, self.org, cancelled.pk, "cancelled")

        response = self.client.get(f"/api/categories/{category.pk}/stats/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {
            "item_count": 2,
            "active_item_count": 1,
            "expense_count": 1,
            "total_expense_amount": "300.00",
            "subcategory_count": 1,
        })

    def test_stats_of_other_organization_is_404(self):
        foreign = Category.objects.create(
            organization=make_organization(), name="Hidden",
            type=Category.Type.ITEM)
        response = self.client.get(f"/api/categories/{foreign.pk}/stats/")
        self.assertEqual(response.status_code, 404)


class ItemApiTests(ApiTestCase):
    def test_quantity_adjustment_and_low_stock(self):
        item = make_item(self.org, quantity=Decimal("3"), reorder_level=Decimal("5"))
        url = f"/api/items/{item.pk}/quantity/"
        response = self.send("patch", url, {
            "adjustment_type": "subtract", "quantity": 10})
        self.assertEqual(response.status_code, 409)

        response = self.send("patch", url, {
            "adjustment_type": "add", "quantity": 10, "reason": "restock"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(Decimal(response.json()["quantity"]), Decimal("13"))

        low = self.client.get("/api/items/low-stock/").json()["data"]
        self.assertEqual(low, [])

    def test_create_with_category_of_other_type_rejected(self):
        response = self.send("post", "/api/categories/", {
            "name": "Sales", "type": "income"})
        self.assertEqual(response.status_code, 201)
        response = self.send("post", "/api/items/", {
            "name": "Widget", "sku": "W-1", "type": "product",
            "category_id": response.json()["id"]})
        self.assertEqual(response.status_code, 400)
        self.assertFalse(Item.objects.exists())

    def test_duplicate_sku_rejected(self):
        make_item(self.org, sku="W-1")
        response = self.send("post", "/api/items/", {
            "name": "Widget", "sku": "W-1", "type": "product"})
        self.assertEqual(response.status_code, 400)


class DashboardApiTests(ApiTestCase):
    def test_endpoints_answer(self):
        for url in ("/api/dashboard/stats/", "/api/dashboard/revenue-trends/",
                    "/api/dashboard/cash-flow/", "/api/dashboard/expense-breakdown/",
                    "/api/payments/stats/summary/", "/api/tax-rates/summary/"):
            self.assertEqual(self.client.get(url).status_code, 200, url)
        self.assertEqual(
            self.client.get("/api/dashboard/revenue-trends/?period=hourly").status_code,
            400)


@pytest.mark.django_db
def test_payment_list_filters_by_direction():
    org = make_organization()
    user = make_user(org)
    customer = make_customer(org)
    client = Client()
    client.force_login(user)
    for amount in ("10.00", "20.00"):
        client.post("/api/payments/", data=json.dumps({
            "direction": "incoming", "customer_id": str(customer.pk),
            "amount": amount, "date": "2025-09-01",
        }), content_type="application/json")

    assert Payment.objects.count() == 2
    incoming = client.get("/api/payments/?direction=incoming").json()
    assert incoming["total"] == 2
    outgoing = client.get("/api/payments/?direction=outgoing").json()
    assert outgoing["total"] == 0
