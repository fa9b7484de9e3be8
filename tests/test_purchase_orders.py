from decimal import Decimal

from sqlalchemy import select, func

from app.core.exceptions import AppException
from app.constants.error_codes import ErrorCode
from app.models.purchasing.purchase_order_models import PurchaseOrder
from app.models.sales.sales_order_models import SalesOrder
from app.models.enums.purchase_order_status import PurchaseOrderStatus
from app.models.enums.sales_order_status import SaleStatus, SalesOrderItemStatus
from app.schemas.purchasing.purchase_order_schemas import PurchaseOrderCreate, PurchaseOrderItemIn
from app.services.purchasing.purchase_order_service import (
    create_purchase_order_from_sales_order,
    approve_purchase_order,
    get_purchase_order,
)
from app.services.sales.sales_order_service import get_sales_order_permissions
from tests.helpers import DatabaseTestCase


class PurchaseOrderTests(DatabaseTestCase):
    async def asyncSetUp(self):
        await super().asyncSetUp()
        self.sales = await self.make_user("sales")
        self.purchasing = await self.make_user("purchasing")
        self.manager_purchasing = await self.make_user("manager-purchasing")

    async def create(self, order_id, user, payload=None):
        permissions = await get_sales_order_permissions(self.session, order_id, user)
        return await create_purchase_order_from_sales_order(
            self.session, order_id, payload or PurchaseOrderCreate(), permissions, user
        )

    async def sale_status(self, order_id):
        return await self.session.scalar(select(SalesOrder.sale_status).where(SalesOrder.id == order_id))

    async def po_count(self):
        return await self.session.scalar(select(func.count(PurchaseOrder.id)))

    async def test_new_order_is_refused_without_side_effects(self):
        order = await self.make_sales_order(self.sales)

        with self.assertRaises(AppException) as ctx:
            await self.create(order.id, self.purchasing)
        self.assertEqual(ctx.exception.status_code, 409)
        self.assertEqual(ctx.exception.error_code, ErrorCode.PRECONDITION_FAILED)

        self.assertEqual(await self.sale_status(order.id), SaleStatus.NEW)
        self.assertEqual(await self.po_count(), 0)

    async def test_creates_draft_from_active_items_and_advances_order(self):
        order = await self.make_sales_order(
            self.sales, sale_status=SaleStatus.PR, items=[("Desk", 2, "150.00"), ("Chair", 1, "80.00")]
        )

        po = await self.create(order.id, self.purchasing, PurchaseOrderCreate(note="Rush"))

        self.assertTrue(po.po_no.startswith("PO"))
        self.assertEqual(po.status, PurchaseOrderStatus.DRAFT)
        self.assertEqual(po.sale_id, order.id)
        self.assertEqual(po.user_id, self.purchasing.id)
        self.assertEqual(po.note, "Rush")
        self.assertEqual([(i.product_name, i.quantity) for i in po.items], [("Desk", 2), ("Chair", 1)])
        self.assertEqual(po.total, Decimal("380.00"))
        self.assertEqual(await self.sale_status(order.id), SaleStatus.PO)

    async def test_explicit_items(self):
        order = await self.make_sales_order(self.sales, sale_status=SaleStatus.PR)
        payload = PurchaseOrderCreate(
            supplier_id=7,
            items=[PurchaseOrderItemIn(product_name="Steel frame", quantity=5, unit_price=Decimal("12.00"))],
        )

        po = await self.create(order.id, self.purchasing, payload)

        self.assertEqual(po.supplier_id, 7)
        self.assertEqual(po.total, Decimal("60.00"))

    async def test_order_without_active_items(self):
        order = await self.make_sales_order(self.sales, sale_status=SaleStatus.PR)
        for item in order.items:
            item.status = SalesOrderItemStatus.CANCELLED
        await self.session.commit()

        with self.assertRaises(AppException) as ctx:
            await self.create(order.id, self.purchasing)
        self.assertEqual(ctx.exception.status_code, 400)
        self.assertEqual(await self.po_count(), 0)

    async def test_sales_owner_cannot_create(self):
        order = await self.make_sales_order(self.sales, sale_status=SaleStatus.PR)

        with self.assertRaises(AppException) as ctx:
            await self.create(order.id, self.sales)
        self.assertEqual(ctx.exception.status_code, 403)
        self.assertEqual(await self.po_count(), 0)

    async def test_superuser_creates_outside_pr(self):
        admin = await self.make_user("superuser")
        order = await self.make_sales_order(self.sales)

        po = await self.create(order.id, admin)

        self.assertEqual(po.status, PurchaseOrderStatus.DRAFT)
        self.assertEqual(await self.sale_status(order.id), SaleStatus.NEW)

    async def test_stale_token(self):
        order = await self.make_sales_order(self.sales, sale_status=SaleStatus.PR)
        permissions = await get_sales_order_permissions(self.session, order.id, self.purchasing)
        await create_purchase_order_from_sales_order(
            self.session, order.id, PurchaseOrderCreate(), permissions, self.purchasing
        )

        admin = await self.make_user("superuser")
        stale = await get_sales_order_permissions(self.session, order.id, admin)
        order.sale_status = SaleStatus.SR
        await self.session.commit()

        with self.assertRaises(AppException) as ctx:
            await create_purchase_order_from_sales_order(self.session, order.id, PurchaseOrderCreate(), stale, admin)
        self.assertEqual(ctx.exception.error_code, ErrorCode.PERMISSIONS_STALE)

    async def test_approval(self):
        order = await self.make_sales_order(self.sales, sale_status=SaleStatus.PR)
        po = await self.create(order.id, self.purchasing)

        with self.assertRaises(AppException) as ctx:
            await approve_purchase_order(self.session, po.id, self.purchasing)
        self.assertEqual(ctx.exception.status_code, 403)

        approved = await approve_purchase_order(self.session, po.id, self.manager_purchasing)
        self.assertEqual(approved.status, PurchaseOrderStatus.APPROVED)

        with self.assertRaises(AppException) as ctx:
            await approve_purchase_order(self.session, po.id, self.manager_purchasing)
        self.assertEqual(ctx.exception.status_code, 409)
        self.assertEqual(ctx.exception.error_code, ErrorCode.PURCHASE_ORDER_INVALID_STATE)

    async def test_approve_missing_order(self):
        with self.assertRaises(AppException) as ctx:
            await approve_purchase_order(self.session, 404, self.manager_purchasing)
        self.assertEqual(ctx.exception.error_code, ErrorCode.PURCHASE_ORDER_NOT_FOUND)

    async def test_sales_cannot_view_purchase_orders(self):
        order = await self.make_sales_order(self.sales, sale_status=SaleStatus.PR)
        po = await self.create(order.id, self.purchasing)

        seen = await get_purchase_order(self.session, po.id, self.manager_purchasing)
        self.assertEqual(seen.po_no, po.po_no)

        with self.assertRaises(AppException) as ctx:
            await get_purchase_order(self.session, po.id, self.sales)
        self.assertEqual(ctx.exception.status_code, 404)
