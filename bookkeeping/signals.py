from django.db.models.signals import pre_delete
from django.dispatch import receiver

from .exceptions import StateConflictError
from .models import Bill, Invoice

""" Block deleting a paid invoice or bill. Documents with payments are
    already protected by the Payment foreign keys (on_delete=PROTECT). """


# pre_delete signal auto-fires just before Django deletes a model instance
# (admin, shell, services alike)
@receiver(pre_delete, sender=Invoice)
def prevent_delete_paid_invoice(sender, instance, **kwargs):
    if instance.is_paid:
        raise StateConflictError("Cannot delete a paid invoice.")


@receiver(pre_delete, sender=Bill)
def prevent_delete_paid_bill(sender, instance, **kwargs):
    if instance.is_paid:
        raise StateConflictError("Cannot delete a paid bill.")
