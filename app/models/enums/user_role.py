# app/models/enums/user_role.py
import enum


class UserRole(str, enum.Enum):
    sales = "sales"
    manager_sales = "manager-sales"
    purchasing = "purchasing"
    manager_purchasing = "manager-purchasing"
    warehouse = "warehouse"
    manager_warehouse = "manager-warehouse"
    finance = "finance"
    manager_finance = "manager-finance"
    superuser = "superuser"


class Department(str, enum.Enum):
    sales = "sales"
    purchasing = "purchasing"
    warehouse = "warehouse"
    finance = "finance"


class RoleTier(int, enum.Enum):
    staff = 1
    manager = 2
    superuser = 3
