import logging
from collections import defaultdict
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import F

from ..exceptions import StateConflictError
from ..models import Item
from .audit_helper import log_action
from .validation import (QUANTITY_DIGITS, QUANTITY_PLACES, check_amount,
                         get_owned, parse_decimal)

logger = logging.getLogger(__name__)

ADJUSTMENT_TYPES = ("add", "subtract", "set")


# ------------------------------------
# Stock adjustment workflows
# ------------------------------------
def adjust_quantity(organization, item_id, adjustment_type, quantity,
                    reason="", user=None) -> Item:
    """
    Add to, subtract from, or overwrite an item's stock on hand.
    Subtracting below zero is refused.
    """
    if adjustment_type not in ADJUSTMENT_TYPES:
        raise ValidationError(
            {"adjustment_type": ["Must be one of: add, subtract, set."]})
    amount = parse_decimal(quantity, "quantity", minimum=Decimal("0"),
                           places=QUANTITY_PLACES, max_digits=QUANTITY_DIGITS)

    with transaction.atomic():
        # Lock the item row until the adjustment commits
        item = get_owned(Item, organization, item_id, "Item", lock=True)
        if item.type != Item.Type.PRODUCT:
            raise ValidationError("Stock is only tracked for products")

        previous = item.quantity
        if adjustment_type == "add":
            new_quantity = previous + amount
        elif adjustment_type == "subtract":
            new_quantity = previous - amount
            if new_quantity < 0:
                raise StateConflictError("Insufficient stock")
        else:
            new_quantity = amount
        check_amount(new_quantity, "quantity", places=QUANTITY_PLACES,
                     max_digits=QUANTITY_DIGITS)

        item.quantity = new_quantity
        item.save(update_fields=["quantity", "updated_at"])

        log_action(
            action="adjust_stock",
            instance=item,
            user=user,
            changes={
                "adjustment_type": adjustment_type,
                "quantity": amount,
                "from": previous,
                "to": new_quantity,
                "reason": reason or "",
            },
        )
    logger.info(
        "Stock of %s %s by %s (%s -> %s)",
        item.sku, adjustment_type, amount, previous, new_quantity,
    )
    return item


def low_stock_items(organization):
    """Active products at or below their reorder level, emptiest first."""
    return (
        Item.objects.active(organization)
        .filter(type=Item.Type.PRODUCT, quantity__lte=F("reorder_level"))
        .select_related("category")
        .order_by("quantity", "name")
    )


def deliver_lines(organization, lines):
    """
    Take delivered quantities out of stock. Must run inside the caller's
    transaction; services and free-text lines are skipped.
    """
    needed = defaultdict(Decimal)
    for line in lines:
        if line.item is not None and line.item.type == Item.Type.PRODUCT:
            needed[line.item.pk] += line.quantity
    if not needed:
        return

    items = (
        Item.objects.for_organization(organization)
        .select_for_update()
        .filter(pk__in=list(needed))
    )
    for item in items:
        if item.quantity < needed[item.pk]:
            raise StateConflictError(
                f"Insufficient stock for {item.name}: "
                f"{item.quantity} on hand, {needed[item.pk]} required")
        Item.objects.filter(pk=item.pk).update(
            quantity=F("quantity") - needed[item.pk])
        logger.info("Delivered %s of %s", needed[item.pk], item.sku)
