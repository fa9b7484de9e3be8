import unittest
from types import SimpleNamespace

from app.utils.opportunity_access import (
    is_opportunity,
    can_convert_opportunity_to_sq,
    can_update_opportunity_status,
)
from tests.helpers import make_actor


def opportunity(status="prospecting", owner=1, assigned=None):
    return SimpleNamespace(status=status, id_user=owner, assigned_to=assigned)


class IsOpportunityTests(unittest.TestCase):
    def test_opportunity_statuses(self):
        self.assertTrue(is_opportunity(opportunity("prospecting")))
        self.assertTrue(is_opportunity(opportunity("opp_lost")))
        self.assertFalse(is_opportunity(opportunity("lead_new")))
        self.assertFalse(is_opportunity(None))


class ConvertRuleTests(unittest.TestCase):
    def test_owner_converts_prospecting(self):
        self.assertEqual(can_convert_opportunity_to_sq(make_actor("sales", user_id=1), opportunity()), (True, None))

    def test_assignee_converts(self):
        allowed, _ = can_convert_opportunity_to_sq(make_actor("sales", user_id=2), opportunity(assigned=2))
        self.assertTrue(allowed)

    def test_manager_sales_cannot_convert(self):
        allowed, reason = can_convert_opportunity_to_sq(make_actor("manager-sales", user_id=1), opportunity())
        self.assertFalse(allowed)
        self.assertIn("managers", reason)

    def test_superuser_converts_any(self):
        allowed, _ = can_convert_opportunity_to_sq(make_actor("superuser", user_id=9), opportunity())
        self.assertTrue(allowed)

    def test_wrong_status_names_required_status(self):
        allowed, reason = can_convert_opportunity_to_sq(make_actor("sales", user_id=1), opportunity("opp_lost"))
        self.assertFalse(allowed)
        self.assertIn("prospecting", reason)

    def test_stranger_cannot_convert(self):
        allowed, _ = can_convert_opportunity_to_sq(make_actor("sales", user_id=3), opportunity())
        self.assertFalse(allowed)

    def test_no_user(self):
        self.assertEqual(can_convert_opportunity_to_sq(None, opportunity()), (False, "Unauthorized"))


class StatusRuleTests(unittest.TestCase):
    def test_sales_cannot_set_sq_manually(self):
        allowed, _ = can_update_opportunity_status(make_actor("sales", user_id=1), opportunity(), "opp_sq")
        self.assertFalse(allowed)
        allowed, _ = can_update_opportunity_status(make_actor("sales", user_id=1), opportunity(), "opp_lost")
        self.assertTrue(allowed)

    def test_manager_limited_to_prospecting_and_lost(self):
        manager = make_actor("manager-sales")
        self.assertTrue(can_update_opportunity_status(manager, opportunity(), "opp_lost")[0])
        self.assertFalse(can_update_opportunity_status(manager, opportunity(), "opp_sq")[0])

    def test_invalid_status(self):
        allowed, reason = can_update_opportunity_status(make_actor("superuser"), opportunity(), "won")
        self.assertFalse(allowed)
        self.assertIn("won", reason)

    def test_other_departments_rejected(self):
        self.assertFalse(can_update_opportunity_status(make_actor("finance"), opportunity(), "opp_lost")[0])
