from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional


class Role(str, Enum):
    admin = "admin"
    employee = "employee"


class AccessLevel(str, Enum):
    guest = "guest"
    customer = "customer"
    employee = "employee"
    admin = "admin"


@dataclass(frozen=True)
class RoleSet:
    is_admin: bool
    is_employee: bool
    is_guest: bool

    @property
    def level(self) -> AccessLevel:
        if self.is_admin:
            return AccessLevel.admin
        if self.is_employee:
            return AccessLevel.employee
        if self.is_guest:
            return AccessLevel.guest
        return AccessLevel.customer

    def has(self, role: Role) -> bool:
        if role is Role.admin:
            return self.is_admin
        return self.is_employee


def derive_roles(
    email: Optional[str],
    role: Optional[str],
    is_guest: bool,
    has_employee_record: bool,
    admin_emails: Iterable[str],
) -> RoleSet:
    """Combine the allow-list, the stored role marker and employee membership into a RoleSet."""
    allowed = {entry.strip().lower() for entry in admin_emails if entry and entry.strip()}
    normalized = (email or "").strip().lower()
    return RoleSet(
        is_admin=(bool(normalized) and normalized in allowed) or role == Role.admin.value,
        is_employee=has_employee_record or role == Role.employee.value,
        is_guest=bool(is_guest),
    )
