import unittest
from datetime import datetime
from types import SimpleNamespace

from app.models.enums.sales_order_status import ReopenEventType
from app.utils.reopen_protocol import (
    REOPEN_REQUEST_MARKER,
    REOPEN_APPROVED_MARKER,
    has_pending_reopen_request,
    has_pending_reopen_event,
    append_reopen_marker,
    is_reopen_pending,
)


def event(event_type):
    return SimpleNamespace(event_type=event_type)


class NoteScanTests(unittest.TestCase):
    def test_request_alone_is_pending(self):
        self.assertTrue(has_pending_reopen_request("[REOPEN REQUEST] please fix"))

    def test_approved_request_is_not_pending(self):
        self.assertFalse(has_pending_reopen_request("[REOPEN REQUEST] fix\n[REOPEN APPROVED] ok"))

    def test_rejected_request_is_not_pending(self):
        self.assertFalse(has_pending_reopen_request("[REOPEN REQUEST] fix\n[REOPEN REJECTED] no"))

    def test_empty_note(self):
        self.assertFalse(has_pending_reopen_request(""))
        self.assertFalse(has_pending_reopen_request(None))


class EventLogTests(unittest.TestCase):
    def test_last_event_decides(self):
        self.assertTrue(has_pending_reopen_event([event(ReopenEventType.REQUEST)]))
        self.assertFalse(
            has_pending_reopen_event([event(ReopenEventType.REQUEST), event(ReopenEventType.REJECT)])
        )
        # a second request after a rejection is pending again
        self.assertTrue(
            has_pending_reopen_event([
                event(ReopenEventType.REQUEST),
                event(ReopenEventType.REJECT),
                event(ReopenEventType.REQUEST),
            ])
        )

    def test_empty_log(self):
        self.assertFalse(has_pending_reopen_event([]))

    def test_legacy_order_without_events_falls_back_to_note(self):
        order = SimpleNamespace(
            reopen_events=[], note="[REOPEN REQUEST] wrong customer", legacy_reopen_notes=True
        )
        self.assertTrue(is_reopen_pending(order))

    def test_markers_typed_into_a_current_note_are_ignored(self):
        order = SimpleNamespace(
            reopen_events=[], note="vendor quote attached [REOPEN REQUEST] template", legacy_reopen_notes=False
        )
        self.assertFalse(is_reopen_pending(order))

    def test_event_log_overrides_note(self):
        order = SimpleNamespace(
            reopen_events=[event(ReopenEventType.REQUEST), event(ReopenEventType.REJECT), event(ReopenEventType.REQUEST)],
            note="[REOPEN REQUEST] a\n[REOPEN REJECTED] b\n[REOPEN REQUEST] c",
        )
        self.assertTrue(is_reopen_pending(order))


class AppendMarkerTests(unittest.TestCase):
    def test_appends_line_to_existing_note(self):
        at = datetime(2025, 2, 3, 14, 5)
        note = append_reopen_marker("Customer PO attached", ReopenEventType.REQUEST, "Dana", "wrong qty", at=at)
        self.assertEqual(
            note,
            f"Customer PO attached\n{REOPEN_REQUEST_MARKER} 2025-02-03 14:05 by Dana: wrong qty",
        )

    def test_empty_note_without_reason(self):
        at = datetime(2025, 2, 3, 9, 0)
        note = append_reopen_marker(None, ReopenEventType.APPROVE, "Sam", at=at)
        self.assertEqual(note, f"{REOPEN_APPROVED_MARKER} 2025-02-03 09:00 by Sam")

    def test_scan_agrees_with_appended_markers(self):
        note = append_reopen_marker(None, ReopenEventType.REQUEST, "Dana")
        self.assertTrue(has_pending_reopen_request(note))
        note = append_reopen_marker(note, ReopenEventType.APPROVE, "Sam")
        self.assertFalse(has_pending_reopen_request(note))
