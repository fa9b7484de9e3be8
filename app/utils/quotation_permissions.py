# app/utils/quotation_permissions.py

from dataclasses import dataclass

from app.models.enums.quotation_status import QuotationStatus, QuotationStage
from app.models.enums.user_role import UserRole
from app.utils.role_helpers import is_superuser, is_manager_sales, is_sales, resolve_role

# Older rows store unprefixed quotation statuses
QUOTATION_STATUS_ALIASES = {
    "draft": QuotationStatus.draft,
    "review": QuotationStatus.review,
    "approved": QuotationStatus.approved,
    "sent": QuotationStatus.sent,
    "revised": QuotationStatus.revised,
    "lost": QuotationStatus.lost,
    "win": QuotationStatus.win,
    "rejected": QuotationStatus.rejected,
    "cancelled": QuotationStatus.cancelled,
    "converted": QuotationStatus.converted,
}


@dataclass(frozen=True)
class QuotationPermission:
    allowed_statuses: frozenset[QuotationStatus]
    allowed_stages: frozenset[QuotationStage]
    can_edit: bool
    can_delete: bool


STATUS_STAGE_MAPPING = {
    QuotationStatus.draft: {QuotationStage.draft},
    QuotationStatus.review: {QuotationStage.review},
    QuotationStatus.approved: {QuotationStage.approved},
    QuotationStatus.sent: {QuotationStage.sent},
    QuotationStatus.revised: {QuotationStage.negotiation},
    QuotationStatus.lost: {QuotationStage.closed},
    QuotationStatus.win: {QuotationStage.closed},
    QuotationStatus.converted: {QuotationStage.closed},
    QuotationStatus.rejected: {QuotationStage.review},
    QuotationStatus.cancelled: {QuotationStage.draft, QuotationStage.review},
}

ROLE_QUOTATION_PERMISSIONS = {
    # sales drafts, sends and closes; approval is a manager step
    UserRole.sales: QuotationPermission(
        allowed_statuses=frozenset({
            QuotationStatus.draft,
            QuotationStatus.review,
            QuotationStatus.sent,
            QuotationStatus.revised,
            QuotationStatus.lost,
            QuotationStatus.win,
            QuotationStatus.cancelled,
        }),
        allowed_stages=frozenset({
            QuotationStage.draft,
            QuotationStage.review,
            QuotationStage.sent,
            QuotationStage.negotiation,
            QuotationStage.closed,
        }),
        can_edit=True,
        can_delete=False,
    ),
    UserRole.manager_sales: QuotationPermission(
        allowed_statuses=frozenset({
            QuotationStatus.review,
            QuotationStatus.approved,
            QuotationStatus.sent,
            QuotationStatus.revised,
            QuotationStatus.lost,
            QuotationStatus.win,
            QuotationStatus.rejected,
            QuotationStatus.cancelled,
        }),
        allowed_stages=frozenset({
            QuotationStage.review,
            QuotationStage.approved,
            QuotationStage.sent,
            QuotationStage.negotiation,
            QuotationStage.closed,
        }),
        can_edit=True,
        can_delete=False,
    ),
    UserRole.superuser: QuotationPermission(
        allowed_statuses=frozenset(QuotationStatus),
        allowed_stages=frozenset(QuotationStage),
        can_edit=True,
        can_delete=True,
    ),
}

NO_QUOTATION_PERMISSION = QuotationPermission(
    allowed_statuses=frozenset(),
    allowed_stages=frozenset(),
    can_edit=False,
    can_delete=False,
)


def normalize_quotation_status(value) -> QuotationStatus | None:
    if value is None:
        return None
    if isinstance(value, QuotationStatus):
        return value
    normalized = str(value).strip().lower()
    if normalized in QUOTATION_STATUS_ALIASES:
        return QUOTATION_STATUS_ALIASES[normalized]
    try:
        return QuotationStatus(normalized)
    except ValueError:
        return None


def normalize_quotation_stage(value) -> QuotationStage | None:
    if value is None:
        return None
    if isinstance(value, QuotationStage):
        return value
    try:
        return QuotationStage(str(value).strip().lower())
    except ValueError:
        return None


def quotation_role(user) -> UserRole | None:
    if is_superuser(user):
        return UserRole.superuser
    if is_manager_sales(user):
        return UserRole.manager_sales
    if is_sales(user):
        return UserRole.sales
    return None


def get_quotation_permissions(user) -> QuotationPermission:
    role = quotation_role(user)
    if role is None:
        return NO_QUOTATION_PERMISSION
    return ROLE_QUOTATION_PERMISSIONS[role]


def is_status_stage_consistent(status: QuotationStatus, stage: QuotationStage) -> bool:
    return stage in STATUS_STAGE_MAPPING.get(status, set())


def validate_quotation_change(user, new_status, new_stage) -> list[str]:
    """Returns the violations; an empty list means the change is allowed."""
    errors: list[str] = []
    permissions = get_quotation_permissions(user)
    role = resolve_role(user)
    role_name = role.value if role else "unknown"

    status = normalize_quotation_status(new_status)
    stage = normalize_quotation_stage(new_stage)

    if status is None:
        errors.append(f"Unknown quotation status {new_status}")
    elif status not in permissions.allowed_statuses:
        errors.append(f"Role {role_name} is not allowed to set status {status.value}")

    if stage is None:
        errors.append(f"Unknown quotation stage {new_stage}")
    elif stage not in permissions.allowed_stages:
        errors.append(f"Role {role_name} is not allowed to set stage {stage.value}")

    if status is not None and stage is not None and not is_status_stage_consistent(status, stage):
        errors.append(f"Status {status.value} is not consistent with stage {stage.value}")

    return errors
