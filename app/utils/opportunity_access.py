# app/utils/opportunity_access.py

from app.models.enums.lead_status import OpportunityStatus
from app.utils.role_helpers import is_superuser, is_manager_sales, is_sales, same_user

OPPORTUNITY_STATUS_VALUES = frozenset(s.value for s in OpportunityStatus)

# status values a manager may set on an opportunity
MANAGER_OPPORTUNITY_STATUSES = frozenset({
    OpportunityStatus.prospecting.value,
    OpportunityStatus.lost.value,
})


def is_opportunity(lead) -> bool:
    return lead is not None and lead.status in OPPORTUNITY_STATUS_VALUES


def can_convert_opportunity(user, opportunity) -> bool:
    """Owner, assigned sales or superuser."""
    if user is None or opportunity is None:
        return False
    return (
        same_user(opportunity.id_user, user)
        or same_user(opportunity.assigned_to, user)
        or is_superuser(user)
    )


def can_convert_opportunity_to_sq(user, opportunity) -> tuple[bool, str | None]:
    if user is None:
        return False, "Unauthorized"

    superuser = is_superuser(user)

    if is_manager_sales(user) and not superuser:
        return False, "Sales managers cannot convert opportunities to quotations"

    if opportunity.status != OpportunityStatus.prospecting.value:
        return False, (
            "Only opportunities with status "
            f"{OpportunityStatus.prospecting.value} can be converted to a quotation"
        )

    if not can_convert_opportunity(user, opportunity):
        return False, "Only the owner or the assigned sales can convert this opportunity"

    if not superuser and not is_sales(user):
        return False, "Your role is not allowed to convert opportunities"

    return True, None


def can_update_opportunity_status(user, opportunity, new_status: str) -> tuple[bool, str | None]:
    if new_status not in OPPORTUNITY_STATUS_VALUES:
        return False, f"Invalid opportunity status {new_status}"

    if is_superuser(user):
        return True, None

    if is_manager_sales(user):
        if new_status not in MANAGER_OPPORTUNITY_STATUSES:
            return False, "Sales managers can only set an opportunity to prospecting or lost"
        return True, None

    if is_sales(user):
        if new_status == OpportunityStatus.sq.value:
            return False, f"Status {new_status} is only reached by converting to a quotation"
        return True, None

    return False, "Your role is not allowed to update opportunities"
