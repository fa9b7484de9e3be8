# Masters
from app.models.masters.product_models import Product
from app.models.masters.customer_models import Customer

#users and auth
from app.models.users.user_models import User
from app.models.support.activity_models import UserActivity
from app.models.support.document_sequence_models import DocumentSequence

# CRM
from app.models.crm.lead_models import Lead

# Sales
from app.models.sales.quotation_models import Quotation, QuotationItem
from app.models.sales.sales_order_models import SalesOrder, SalesOrderItem, SalesOrderReopenEvent

# Purchasing
from app.models.purchasing.purchase_order_models import PurchaseOrder, PurchaseOrderItem
