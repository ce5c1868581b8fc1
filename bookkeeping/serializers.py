"""
Model -> JSON-ready dict conversion for the API views.

Values are left as Decimal/date/UUID; JsonResponse's DjangoJSONEncoder
renders them (Decimals as strings, so no float rounding reaches clients).
"""


def _id(value):
    return str(value) if value is not None else None


def organization_to_dict(org):
    return {
        "id": _id(org.pk),
        "name": org.name,
        "slug": org.slug,
        "email": org.email,
        "phone": org.phone,
        "address": org.address,
        "gstin": org.gstin,
        "currency_code": org.currency_code,
    }


def user_to_dict(user, membership=None):
    data = {
        "id": user.pk,
        "username": user.username,
        "email": user.email,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "phone": user.phone,
    }
    if membership is not None:
        data["role"] = membership.role
        data["organization"] = organization_to_dict(membership.organization)
    return data


def _counterparty(obj):
    return {
        "id": _id(obj.pk),
        "name": obj.name,
        "email": obj.email,
        "phone": obj.phone,
        "company_name": obj.company_name,
        "gstin": obj.gstin,
        "pan_number": obj.pan_number,
        "billing_address": obj.billing_address,
        "shipping_address": obj.shipping_address,
        "payment_terms": obj.payment_terms,
        "currency_code": obj.currency_code,
        "is_active": obj.is_active,
        "created_at": obj.created_at,
        "updated_at": obj.updated_at,
    }


def customer_to_dict(customer):
    data = _counterparty(customer)
    data["credit_limit"] = customer.credit_limit
    return data


def vendor_to_dict(vendor):
    return _counterparty(vendor)


def category_to_dict(category):
    return {
        "id": _id(category.pk),
        "name": category.name,
        "description": category.description,
        "type": category.type,
        "parent_id": _id(category.parent_id),
        "is_active": category.is_active,
    }


def tax_rate_to_dict(tax_rate):
    return {
        "id": _id(tax_rate.pk),
        "name": tax_rate.name,
        "rate": tax_rate.rate,
        "type": tax_rate.type,
        "description": tax_rate.description,
        "is_active": tax_rate.is_active,
    }


def item_to_dict(item):
    return {
        "id": _id(item.pk),
        "name": item.name,
        "sku": item.sku,
        "description": item.description,
        "type": item.type,
        "price": item.price,
        "cost_price": item.cost_price,
        "quantity": item.quantity,
        "unit": item.unit,
        "reorder_level": item.reorder_level,
        "tax_rate_id": _id(item.tax_rate_id),
        "hsn_code": item.hsn_code,
        "category_id": _id(item.category_id),
        "category_name": item.category.name if item.category_id else None,
        "is_active": item.is_active,
        "is_low_stock": item.is_low_stock,
        "created_at": item.created_at,
        "updated_at": item.updated_at,
    }


def line_item_to_dict(line):
    return {
        "id": _id(line.pk),
        "item_id": _id(line.item_id),
        "description": line.description,
        "quantity": line.quantity,
        "price": line.price,
        "tax_rate_id": _id(line.tax_rate_id),
        "tax_amount": line.tax_amount,
        "total": line.total,
    }


def payment_to_dict(payment):
    return {
        "id": _id(payment.pk),
        "payment_number": payment.payment_number,
        "direction": payment.direction,
        "customer_id": _id(payment.customer_id),
        "vendor_id": _id(payment.vendor_id),
        "invoice_id": _id(payment.invoice_id),
        "bill_id": _id(payment.bill_id),
        "date": payment.date,
        "amount": payment.amount,
        "currency_code": payment.currency_code,
        "payment_method": payment.payment_method,
        "reference_number": payment.reference_number,
        "notes": payment.notes,
        "created_at": payment.created_at,
    }


def document_to_dict(document, detail=False):
    """Sales order, invoice or bill. detail adds line items (and payments)."""
    counterparty = document.COUNTERPARTY_FIELD
    party = getattr(document, counterparty)
    data = {
        "id": _id(document.pk),
        document.NUMBER_FIELD: document.number,
        f"{counterparty}_id": _id(party.pk),
        f"{counterparty}_name": party.name,
        "date": document.date,
        "status": document.status,
        "subtotal": document.subtotal,
        "tax_total": document.tax_total,
        "total": document.total,
        "currency_code": document.currency_code,
        "notes": document.notes,
        "terms": document.terms,
        "created_at": document.created_at,
        "updated_at": document.updated_at,
    }
    for optional in ("due_date", "balance_due", "expected_delivery_date",
                     "reference_number"):
        if hasattr(document, optional):
            data[optional] = getattr(document, optional)
    if hasattr(document, "sales_order_id"):
        data["sales_order_id"] = _id(document.sales_order_id)
    if detail:
        data["line_items"] = [
            line_item_to_dict(line) for line in document.line_items.all()
        ]
        if hasattr(document, "payments"):
            data["payments"] = [
                payment_to_dict(p) for p in document.payments.all()
            ]
    return data

