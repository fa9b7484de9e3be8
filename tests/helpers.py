import itertools
import unittest
from decimal import Decimal
from types import SimpleNamespace

from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.db import Base
from app.models.crm.lead_models import Lead
from app.models.masters.customer_models import Customer
from app.models.masters.product_models import Product
from app.models.sales.quotation_models import Quotation, QuotationItem
from app.models.sales.sales_order_models import SalesOrder, SalesOrderItem
from app.models.users.user_models import User
from app.models.enums.sales_order_status import (
    SaleStatus,
    PaymentStatus,
    SalesOrderItemStatus,
)
from app.utils.sales_order_flow import legacy_status_for

_ids = itertools.count(1)


def make_actor(role, user_id=None, **extra):
    """Plain attribute object, enough for the pure rule modules."""
    return SimpleNamespace(id=user_id if user_id is not None else next(_ids), role=role, **extra)


def make_order(sale_status, user_id=10, order_id=1, **extra):
    return SimpleNamespace(id=order_id, sale_status=sale_status, user_id=user_id, **extra)


class DatabaseTestCase(unittest.IsolatedAsyncioTestCase):
    """Fresh in-memory database per test."""

    async def asyncSetUp(self):
        self.engine = create_async_engine(
            "sqlite+aiosqlite://",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

        self.Session = sessionmaker(
            bind=self.engine,
            class_=AsyncSession,
            autoflush=False,
            expire_on_commit=False,
        )
        self.session = self.Session()

    async def asyncTearDown(self):
        await self.session.close()
        await self.engine.dispose()

    # -------------------------
    # factories
    # -------------------------
    async def _save(self, obj):
        self.session.add(obj)
        await self.session.commit()
        return obj

    async def make_user(self, role="sales", name=None):
        n = next(_ids)
        return await self._save(
            User(
                username=f"user{n}@example.com",
                name=name or f"User {n}",
                password_hash="not-a-real-hash",
                role=role,
                is_active=True,
                token_version=0,
            )
        )

    async def make_customer(self, name="Acme Corp", email=None):
        return await self._save(Customer(name=name, email=email, is_active=True))

    async def make_product(self, name, price="100.00"):
        n = next(_ids)
        return await self._save(
            Product(
                product_code=f"P{n:04d}",
                name=name,
                price=Decimal(price) if price is not None else None,
                stock=0,
            )
        )

    async def make_lead(self, owner, status="prospecting", product_interest=None, assigned_to=None, **extra):
        return await self._save(
            Lead(
                lead_name=extra.pop("lead_name", "Globex"),
                email=extra.pop("email", "buyer@globex.test"),
                product_interest=product_interest,
                id_user=owner.id,
                assigned_to=assigned_to.id if assigned_to else None,
                status=status,
                **extra,
            )
        )

    async def make_quotation(self, owner, customer, status="sq_approved", stage="approved", items=None):
        n = next(_ids)
        items = items or [("Desk", 2, "150.00")]
        lines = [
            QuotationItem(
                product_name=name,
                quantity=qty,
                unit_price=Decimal(price),
                line_total=Decimal(price) * qty,
            )
            for name, qty, price in items
        ]
        total = sum((line.line_total for line in lines), Decimal("0.00"))
        return await self._save(
            Quotation(
                quotation_no=f"SQTEST{n:04d}R0",
                customer_id=customer.id,
                user_id=owner.id if owner else None,
                status=status,
                stage=stage,
                total=total,
                grand_total=total,
                items=lines,
            )
        )

    async def make_sales_order(self, owner, customer=None, sale_status=SaleStatus.NEW, items=None, note=None):
        n = next(_ids)
        customer = customer or await self.make_customer()
        items = items if items is not None else [("Desk", 2, "150.00")]
        lines = [
            SalesOrderItem(
                product_name=name,
                quantity=qty,
                delivered_quantity=0,
                unit_price=Decimal(price),
                line_total=Decimal(price) * qty,
                status=SalesOrderItemStatus.ACTIVE,
            )
            for name, qty, price in items
        ]
        total = sum((line.line_total for line in lines), Decimal("0.00"))
        return await self._save(
            SalesOrder(
                sale_no=f"SOTEST{n:04d}",
                customer_id=customer.id,
                user_id=owner.id,
                sale_status=sale_status,
                status=legacy_status_for(sale_status),
                payment_status=PaymentStatus.UNPAID,
                total=total,
                grand_total=total,
                note=note,
                items=lines,
                reopen_events=[],
            )
        )
