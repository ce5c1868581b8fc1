from .actions import (cancel_documents, mark_bill_received, mark_invoice_sent,
                      mark_order_confirmed)
from .auditlog import AuditLogAdmin
from .catalog import (CategoryAdmin, CustomerAdmin, ItemAdmin, TaxRateAdmin,
                      VendorAdmin)
from .documents import BillAdmin, InvoiceAdmin, SalesOrderAdmin
from .forms import UserAdminChangeForm, UserAdminCreationForm
from .inlines import LineItemInline, PaymentInline
from .membership import MembershipAdmin, OrganizationAdmin, UserAdmin
from .mixins import TenantAdminMixin
from .payment import PaymentAdmin
