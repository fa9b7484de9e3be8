# app/utils/sales_order_flow.py

from app.models.enums.sales_order_status import SaleStatus, LegacySalesOrderStatus

# Pre-registry spellings of NEW
SALE_STATUS_ALIASES = {
    "OPEN": SaleStatus.NEW,
    "DRAFT": SaleStatus.NEW,
}

FORWARD_CHAIN = (
    SaleStatus.NEW,
    SaleStatus.PR,
    SaleStatus.PO,
    SaleStatus.SR,
    SaleStatus.FAR,
    SaleStatus.DR,
    SaleStatus.DELIVERY,
    SaleStatus.DELIVERED,
    SaleStatus.RECEIVED,
    SaleStatus.COMPLETED,
)

TERMINAL_STATUSES = frozenset({SaleStatus.COMPLETED, SaleStatus.CANCELLED})

# Purchasing holds the order in these statuses
PURCHASING_STATUSES = frozenset({
    SaleStatus.PR,
    SaleStatus.PO,
    SaleStatus.SR,
    SaleStatus.FAR,
    SaleStatus.DR,
})


def _build_transitions() -> dict[SaleStatus, frozenset[SaleStatus]]:
    transitions: dict[SaleStatus, set[SaleStatus]] = {s: set() for s in SaleStatus}

    for current, following in zip(FORWARD_CHAIN, FORWARD_CHAIN[1:]):
        transitions[current].add(following)

    for status in SaleStatus:
        if status not in TERMINAL_STATUSES:
            transitions[status].add(SaleStatus.CANCELLED)

    # the only backward edge, used by the reopen protocol
    transitions[SaleStatus.PR].add(SaleStatus.NEW)

    return {status: frozenset(targets) for status, targets in transitions.items()}


TRANSITIONS = _build_transitions()

# action name -> destination status
ACTION_TARGETS = {
    "update_status_pr": SaleStatus.PR,
    "update_status_po": SaleStatus.PO,
    "update_status_sr": SaleStatus.SR,
    "update_status_far": SaleStatus.FAR,
    "approve_far": SaleStatus.DR,
    "update_status_dr": SaleStatus.DR,
    "update_status_delivery": SaleStatus.DELIVERY,
    "update_status_delivered": SaleStatus.DELIVERED,
    "update_status_received": SaleStatus.RECEIVED,
    "complete": SaleStatus.COMPLETED,
    "cancel": SaleStatus.CANCELLED,
    "reopen_to_new": SaleStatus.NEW,
}

# forward action offered by purchasing in each purchasing-held status
PURCHASING_FORWARD_ACTIONS = {
    SaleStatus.PR: "update_status_po",
    SaleStatus.PO: "update_status_sr",
    SaleStatus.SR: "update_status_far",
    SaleStatus.FAR: "update_status_dr",
    SaleStatus.DR: "update_status_delivery",
}

LEGACY_STATUS_BY_SALE_STATUS = {
    SaleStatus.NEW: LegacySalesOrderStatus.DRAFT,
    SaleStatus.COMPLETED: LegacySalesOrderStatus.COMPLETED,
    SaleStatus.CANCELLED: LegacySalesOrderStatus.CANCELLED,
}


def normalize_sale_status(value) -> SaleStatus | None:
    if value is None:
        return None
    if isinstance(value, SaleStatus):
        return value

    normalized = str(value).strip().upper()
    if normalized in SALE_STATUS_ALIASES:
        return SALE_STATUS_ALIASES[normalized]

    try:
        return SaleStatus(normalized)
    except ValueError:
        return None


def next_possible_statuses(current) -> frozenset[SaleStatus]:
    status = normalize_sale_status(current)
    if status is None:
        return frozenset()
    return TRANSITIONS[status]


def is_valid_transition(from_status, to_status) -> bool:
    target = normalize_sale_status(to_status)
    if target is None:
        return False
    return target in next_possible_statuses(from_status)


def is_terminal(status) -> bool:
    return normalize_sale_status(status) in TERMINAL_STATUSES


def legacy_status_for(status: SaleStatus) -> LegacySalesOrderStatus:
    return LEGACY_STATUS_BY_SALE_STATUS.get(status, LegacySalesOrderStatus.ACTIVE)
