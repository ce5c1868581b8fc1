from .auditlog import AuditLog
from .bill import Bill, BillStatus
from .category import Category
from .customer import Customer
from .document import Document, PayableDocument
from .invoice import Invoice, InvoiceStatus
from .item import Item
from .line_item import LineItem
from .organization import Membership, Organization, User
from .payment import Payment, PaymentDirection, PaymentMethod
from .sales_order import SalesOrder, SalesOrderStatus
from .tax_rate import TaxRate
from .vendor import Vendor
