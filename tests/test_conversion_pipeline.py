from decimal import Decimal

from sqlalchemy import select, func

from app.core.exceptions import AppException
from app.constants.error_codes import ErrorCode
from app.models.crm.lead_models import Lead
from app.models.masters.customer_models import Customer
from app.models.sales.quotation_models import Quotation
from app.models.sales.sales_order_models import SalesOrder
from app.models.support.activity_models import UserActivity
from app.models.enums.sales_order_status import (
    SaleStatus,
    LegacySalesOrderStatus,
    PaymentStatus,
    SalesOrderItemStatus,
)
from app.models.enums.lead_status import OpportunityStatus
from app.services.crm.lead_service import convert_lead_to_quotation, update_opportunity_status
from app.services.sales.quotation_service import convert_quotation_to_sales_order
from tests.helpers import DatabaseTestCase


class LeadToQuotationTests(DatabaseTestCase):
    async def asyncSetUp(self):
        await super().asyncSetUp()
        self.sales = await self.make_user("sales", name="Dana")
        await self.make_product("Desk", "150.00")
        await self.make_product("Chair", "80.00")

    async def test_converts_prospecting_opportunity(self):
        lead = await self.make_lead(self.sales, product_interest="Desk, Chair, Hoverboard")

        quotation = await convert_lead_to_quotation(self.session, lead.id, self.sales)

        self.assertTrue(quotation.quotation_no.startswith("SQ"))
        self.assertTrue(quotation.quotation_no.endswith("R0"))
        self.assertEqual(quotation.status, "sq_draft")
        self.assertEqual(quotation.stage, "draft")
        self.assertEqual(quotation.user_id, self.sales.id)
        self.assertEqual(quotation.lead_id, lead.id)
        self.assertEqual([i.product_name for i in quotation.items], ["Desk", "Chair"])
        self.assertEqual([i.quantity for i in quotation.items], [1, 1])
        self.assertEqual(quotation.grand_total, Decimal("230.00"))

        stored = await self.session.scalar(select(Lead).where(Lead.id == lead.id))
        self.assertEqual(stored.status, "opp_sq")
        self.assertIn(quotation.quotation_no, stored.note)

        customer = await self.session.get(Customer, quotation.customer_id)
        self.assertEqual(customer.name, lead.lead_name)

        messages = (await self.session.execute(select(UserActivity.message))).scalars().all()
        self.assertTrue(any(quotation.quotation_no in m for m in messages))

    async def test_reuses_customer_matched_by_email(self):
        existing = await self.make_customer(name="Globex Holdings", email="buyer@globex.test")
        lead = await self.make_lead(self.sales, product_interest="Desk")

        quotation = await convert_lead_to_quotation(self.session, lead.id, self.sales)

        self.assertEqual(quotation.customer_id, existing.id)
        self.assertEqual(await self.session.scalar(select(func.count(Customer.id))), 1)

    async def test_explicit_customer(self):
        customer = await self.make_customer(name="Initech")
        lead = await self.make_lead(self.sales)

        quotation = await convert_lead_to_quotation(self.session, lead.id, self.sales, customer_id=customer.id)

        self.assertEqual(quotation.customer_id, customer.id)
        self.assertEqual(quotation.items, [])

    async def test_unknown_customer_rolls_back(self):
        lead = await self.make_lead(self.sales, product_interest="Desk")
        lead_id = lead.id

        with self.assertRaises(AppException) as ctx:
            await convert_lead_to_quotation(self.session, lead_id, self.sales, customer_id=999)
        self.assertEqual(ctx.exception.error_code, ErrorCode.CUSTOMER_NOT_FOUND)

        status = await self.session.scalar(select(Lead.status).where(Lead.id == lead_id))
        self.assertEqual(status, "prospecting")
        self.assertEqual(await self.session.scalar(select(func.count(Quotation.id))), 0)

    async def test_manager_sales_cannot_convert(self):
        manager = await self.make_user("manager-sales")
        lead = await self.make_lead(self.sales)

        with self.assertRaises(AppException) as ctx:
            await convert_lead_to_quotation(self.session, lead.id, manager)
        self.assertEqual(ctx.exception.status_code, 409)
        self.assertEqual(ctx.exception.error_code, ErrorCode.PRECONDITION_FAILED)

    async def test_lost_opportunity_cannot_convert(self):
        lead = await self.make_lead(self.sales, status="opp_lost")

        with self.assertRaises(AppException) as ctx:
            await convert_lead_to_quotation(self.session, lead.id, self.sales)
        self.assertEqual(ctx.exception.error_code, ErrorCode.PRECONDITION_FAILED)
        self.assertIn("prospecting", ctx.exception.detail)

    async def test_other_sales_user_sees_not_found(self):
        stranger = await self.make_user("sales")
        lead = await self.make_lead(self.sales)

        with self.assertRaises(AppException) as ctx:
            await convert_lead_to_quotation(self.session, lead.id, stranger)
        self.assertEqual(ctx.exception.status_code, 404)

    async def test_assignee_converts(self):
        assignee = await self.make_user("sales")
        lead = await self.make_lead(self.sales, assigned_to=assignee)

        quotation = await convert_lead_to_quotation(self.session, lead.id, assignee)
        self.assertEqual(quotation.user_id, assignee.id)

    async def test_reset_opportunity_cannot_be_converted_twice(self):
        lead = await self.make_lead(self.sales, product_interest="Desk")
        first = await convert_lead_to_quotation(self.session, lead.id, self.sales)

        reset = await update_opportunity_status(self.session, lead.id, OpportunityStatus.prospecting, self.sales)
        self.assertEqual(reset.status, "prospecting")

        with self.assertRaises(AppException) as ctx:
            await convert_lead_to_quotation(self.session, lead.id, self.sales)
        self.assertEqual(ctx.exception.status_code, 409)
        self.assertEqual(ctx.exception.error_code, ErrorCode.LEAD_ALREADY_CONVERTED)
        self.assertIn(first.quotation_no, ctx.exception.detail)
        self.assertEqual(await self.session.scalar(select(func.count(Quotation.id))), 1)


class QuotationToSalesOrderTests(DatabaseTestCase):
    async def asyncSetUp(self):
        await super().asyncSetUp()
        self.sales = await self.make_user("sales")
        self.customer = await self.make_customer()

    async def test_converts_approved_quotation(self):
        quotation = await self.make_quotation(
            self.sales, self.customer, items=[("Desk", 2, "150.00"), ("Chair", 4, "80.00")]
        )

        order = await convert_quotation_to_sales_order(self.session, quotation.id, self.sales)

        self.assertTrue(order.sale_no.startswith("SO"))
        self.assertEqual(order.sale_status, SaleStatus.NEW)
        self.assertEqual(order.status, LegacySalesOrderStatus.DRAFT)
        self.assertEqual(order.payment_status, PaymentStatus.UNPAID)
        self.assertEqual(order.quotation_id, quotation.id)
        self.assertEqual(order.user_id, self.sales.id)
        self.assertEqual(order.grand_total, Decimal("620.00"))
        self.assertEqual([(i.product_name, i.quantity) for i in order.items], [("Desk", 2), ("Chair", 4)])
        self.assertTrue(all(i.status == SalesOrderItemStatus.ACTIVE for i in order.items))
        self.assertIn(quotation.quotation_no, order.note)

        stored = await self.session.scalar(select(Quotation).where(Quotation.id == quotation.id))
        self.assertEqual((stored.status, stored.stage), ("sq_converted", "closed"))

    async def test_order_stays_with_quotation_owner(self):
        manager = await self.make_user("manager-sales")
        quotation = await self.make_quotation(self.sales, self.customer, status="sq_win", stage="closed")

        order = await convert_quotation_to_sales_order(self.session, quotation.id, manager)

        self.assertEqual(order.user_id, self.sales.id)

    async def test_sent_quotation_needs_sent_stage(self):
        sent = await self.make_quotation(self.sales, self.customer, status="sq_sent", stage="sent")
        order = await convert_quotation_to_sales_order(self.session, sent.id, self.sales)
        self.assertEqual(order.sale_status, SaleStatus.NEW)

        negotiating = await self.make_quotation(self.sales, self.customer, status="sq_sent", stage="negotiation")
        with self.assertRaises(AppException) as ctx:
            await convert_quotation_to_sales_order(self.session, negotiating.id, self.sales)
        self.assertEqual(ctx.exception.error_code, ErrorCode.PRECONDITION_FAILED)

    async def test_legacy_status_spelling_is_accepted(self):
        quotation = await self.make_quotation(self.sales, self.customer, status="approved")
        order = await convert_quotation_to_sales_order(self.session, quotation.id, self.sales)
        self.assertEqual(order.quotation_id, quotation.id)

    async def test_draft_quotation_is_rejected(self):
        quotation = await self.make_quotation(self.sales, self.customer, status="sq_draft", stage="draft")

        with self.assertRaises(AppException) as ctx:
            await convert_quotation_to_sales_order(self.session, quotation.id, self.sales)
        self.assertEqual(ctx.exception.status_code, 409)
        self.assertEqual(ctx.exception.error_code, ErrorCode.PRECONDITION_FAILED)
        self.assertEqual(await self.session.scalar(select(func.count(SalesOrder.id))), 0)

    async def test_second_conversion_is_rejected(self):
        quotation = await self.make_quotation(self.sales, self.customer)
        await convert_quotation_to_sales_order(self.session, quotation.id, self.sales)

        with self.assertRaises(AppException) as ctx:
            await convert_quotation_to_sales_order(self.session, quotation.id, self.sales)
        self.assertEqual(ctx.exception.error_code, ErrorCode.QUOTATION_ALREADY_CONVERTED)
        self.assertEqual(await self.session.scalar(select(func.count(SalesOrder.id))), 1)

    async def test_non_owner_sees_not_found(self):
        stranger = await self.make_user("sales")
        quotation = await self.make_quotation(self.sales, self.customer)

        with self.assertRaises(AppException) as ctx:
            await convert_quotation_to_sales_order(self.session, quotation.id, stranger)
        self.assertEqual(ctx.exception.error_code, ErrorCode.QUOTATION_NOT_FOUND)
