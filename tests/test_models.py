import unittest

from app.core.db import Base


class RelationshipLoadingTests(unittest.TestCase):
    def test_no_relationship_uses_noload(self):
        offenders = [
            f"{mapper.class_.__name__}.{rel.key}"
            for mapper in Base.registry.mappers
            for rel in mapper.relationships
            if rel.lazy == "noload"
        ]
        self.assertEqual(offenders, [])

    def test_new_sales_orders_are_not_legacy_reopen_rows(self):
        from app.models.sales.sales_order_models import SalesOrder

        column = SalesOrder.__table__.c.legacy_reopen_notes
        self.assertFalse(column.default.arg)
        self.assertIsNotNone(column.server_default)
