# app/utils/reopen_protocol.py

from datetime import datetime, timezone

from app.models.enums.sales_order_status import ReopenEventType

REOPEN_REQUEST_MARKER = "[REOPEN REQUEST]"
REOPEN_APPROVED_MARKER = "[REOPEN APPROVED]"
REOPEN_REJECTED_MARKER = "[REOPEN REJECTED]"

MARKER_BY_EVENT = {
    ReopenEventType.REQUEST: REOPEN_REQUEST_MARKER,
    ReopenEventType.APPROVE: REOPEN_APPROVED_MARKER,
    ReopenEventType.REJECT: REOPEN_REJECTED_MARKER,
}


def has_pending_reopen_request(note: str | None) -> bool:
    """Textual scan of a note: a request marker with no approval or rejection marker."""
    if not note:
        return False
    return (
        REOPEN_REQUEST_MARKER in note
        and REOPEN_APPROVED_MARKER not in note
        and REOPEN_REJECTED_MARKER not in note
    )


def has_pending_reopen_event(events) -> bool:
    """Authoritative check over the event log: the latest event is a request."""
    if not events:
        return False
    return events[-1].event_type == ReopenEventType.REQUEST


def append_reopen_marker(
    note: str | None,
    event_type: ReopenEventType,
    actor_name: str,
    reason: str | None = None,
    at: datetime | None = None,
) -> str:
    at = at or datetime.now(timezone.utc)
    line = f"{MARKER_BY_EVENT[event_type]} {at:%Y-%m-%d %H:%M} by {actor_name}"
    if reason:
        line = f"{line}: {reason}"
    return f"{note}\n{line}" if note else line


def is_reopen_pending(order) -> bool:
    """Event log first. Only rows that predate the log fall back to the note markers."""
    events = list(order.reopen_events or [])
    if events:
        return has_pending_reopen_event(events)
    if getattr(order, "legacy_reopen_notes", False):
        return has_pending_reopen_request(order.note)
    return False
