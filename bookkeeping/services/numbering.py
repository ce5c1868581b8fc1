import logging
import re

from django.db.models.functions import Length

from ..exceptions import DocumentNumberError

logger = logging.getLogger(__name__)

NUMBER_RE = re.compile(r"^(?P<prefix>[A-Z]+)-(?P<sequence>\d+)$")
MIN_DIGITS = 4


def format_number(prefix: str, sequence: int) -> str:
    # Zero-padded to four digits, grows naturally past 9999
    return f"{prefix}-{sequence:0{MIN_DIGITS}d}"


def parse_number(number: str, prefix: str) -> int:
    match = NUMBER_RE.match(number or "")
    if not match or match.group("prefix") != prefix:
        raise DocumentNumberError(
            f"Stored number {number!r} does not match the {prefix}-NNNN format"
        )
    return int(match.group("sequence"))


def next_document_number(organization, model) -> str:
    """
    Next sequential number for `model` (SalesOrder, Invoice, Bill, Payment)
    inside one organization: highest stored suffix + 1, or 0001.

    Longer numbers sort first so INV-10000 beats INV-9999. Two concurrent
    callers may compute the same value; the (organization, number) unique
    constraint rejects the second insert.
    """
    field = model.NUMBER_FIELD
    prefix = model.NUMBER_PREFIX
    last = (
        model.objects.for_organization(organization)
        .annotate(number_length=Length(field))
        .order_by("-number_length", f"-{field}")
        .values_list(field, flat=True)
        .first()
    )
    if last is None:
        return format_number(prefix, 1)
    try:
        sequence = parse_number(last, prefix)
    except DocumentNumberError:
        logger.error(
            "Cannot number new %s for organization %s: last number %r is malformed",
            model.__name__, organization.pk, last,
        )
        raise
    return format_number(prefix, sequence + 1)
