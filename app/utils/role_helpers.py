"""
Role classification.

A user's role is a flat string. Department membership and seniority are
derived from the capability matrix below, never from string comparisons at
call sites. Every predicate is fail-closed: a missing user, a missing role or
an unknown role yields False.
"""

from collections.abc import Mapping

from app.models.enums.user_role import UserRole, Department, RoleTier

# Legacy spellings seen in older user tables
ROLE_ALIASES = {
    "manager_sales": UserRole.manager_sales,
    "manager_purchasing": UserRole.manager_purchasing,
    "manager_warehouse": UserRole.manager_warehouse,
    "manager_finance": UserRole.manager_finance,
    "superadmin": UserRole.superuser,
}

ALL_DEPARTMENTS = frozenset(Department)

ROLE_DEPARTMENTS: dict[UserRole, frozenset[Department]] = {
    UserRole.sales: frozenset({Department.sales}),
    UserRole.manager_sales: frozenset({Department.sales}),
    UserRole.purchasing: frozenset({Department.purchasing}),
    UserRole.manager_purchasing: frozenset({Department.purchasing}),
    UserRole.warehouse: frozenset({Department.warehouse}),
    UserRole.manager_warehouse: frozenset({Department.warehouse}),
    UserRole.finance: frozenset({Department.finance}),
    UserRole.manager_finance: frozenset({Department.finance}),
    UserRole.superuser: ALL_DEPARTMENTS,
}

ROLE_TIERS: dict[UserRole, RoleTier] = {
    UserRole.sales: RoleTier.staff,
    UserRole.purchasing: RoleTier.staff,
    UserRole.warehouse: RoleTier.staff,
    UserRole.finance: RoleTier.staff,
    UserRole.manager_sales: RoleTier.manager,
    UserRole.manager_purchasing: RoleTier.manager,
    UserRole.manager_warehouse: RoleTier.manager,
    UserRole.manager_finance: RoleTier.manager,
    UserRole.superuser: RoleTier.superuser,
}


def _read(source, key: str):
    if isinstance(source, Mapping):
        return source.get(key)
    return getattr(source, key, None)


def _raw_role_name(user) -> str | None:
    if user is None:
        return None

    # session payloads sometimes wrap the user: {"user": {...}}
    nested_user = _read(user, "user")
    if nested_user is not None and nested_user is not user:
        user = nested_user

    for key in ("role", "role_name"):
        value = _read(user, key)
        if isinstance(value, str) and value.strip():
            return value

    roles = _read(user, "roles")
    if roles is not None:
        value = _read(roles, "role_name")
        if isinstance(value, str) and value.strip():
            return value

    return None


def resolve_role(user) -> UserRole | None:
    raw = _raw_role_name(user)
    if raw is None:
        return None

    normalized = raw.strip().lower()
    if normalized in ROLE_ALIASES:
        return ROLE_ALIASES[normalized]

    try:
        return UserRole(normalized)
    except ValueError:
        return None


def user_departments(user) -> frozenset[Department]:
    role = resolve_role(user)
    if role is None:
        return frozenset()
    return ROLE_DEPARTMENTS[role]


def user_tier(user) -> RoleTier | None:
    role = resolve_role(user)
    if role is None:
        return None
    return ROLE_TIERS[role]


def _in_department(user, department: Department) -> bool:
    return department in user_departments(user)


def _manages(user, department: Department) -> bool:
    tier = user_tier(user)
    if tier is None or tier < RoleTier.manager:
        return False
    return _in_department(user, department)


# =====================================================
# PREDICATES
# =====================================================
def is_superuser(user) -> bool:
    return resolve_role(user) == UserRole.superuser


def is_sales(user) -> bool:
    return _in_department(user, Department.sales)


def is_manager_sales(user) -> bool:
    return _manages(user, Department.sales)


def is_purchasing(user) -> bool:
    return _in_department(user, Department.purchasing)


def is_manager_purchasing(user) -> bool:
    return _manages(user, Department.purchasing)


def is_warehouse(user) -> bool:
    return _in_department(user, Department.warehouse)


def is_manager_warehouse(user) -> bool:
    return _manages(user, Department.warehouse)


def is_finance(user) -> bool:
    return _in_department(user, Department.finance)


def is_manager_finance(user) -> bool:
    return _manages(user, Department.finance)


def can_access_all(user) -> bool:
    return is_superuser(user) or is_manager_sales(user)


def same_user(resource_user_id, user) -> bool:
    if resource_user_id is None or user is None:
        return False
    user_id = _read(user, "id")
    if user_id is None:
        return False
    try:
        return int(resource_user_id) == int(user_id)
    except (TypeError, ValueError):
        return False
