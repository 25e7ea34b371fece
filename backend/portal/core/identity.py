import logging
from dataclasses import dataclass
from typing import Any, Optional

from sqlalchemy.orm import Session

from portal.core.config import Settings
from portal.core.roles import RoleSet, derive_roles
from portal.models.employee import Employee
from portal.models.user import User


logger = logging.getLogger(__name__)


@dataclass
class Identity:
    user: User
    employee: Optional[Employee]
    roles: RoleSet

    @property
    def user_id(self) -> int:
        return self.user.id


def parse_subject(subject: Any) -> Optional[int]:
    try:
        value = int(str(subject))
    except (TypeError, ValueError):
        return None
    return value if value > 0 else None


class IdentityResolver:
    """Loads the principal behind a subject id and derives its roles from current state.

    Nothing is cached: the allow-list is read from the injected settings and the
    employee record from the store on every call.
    """

    def __init__(self, config: Settings):
        self.config = config

    def roles_for(self, db: Session, user: User) -> RoleSet:
        employee = db.query(Employee).filter(Employee.user_id == user.id).first()
        return self._derive(user, employee)

    def resolve(self, db: Session, subject: Any) -> Optional[Identity]:
        user_id = parse_subject(subject)
        if user_id is None:
            logger.info("Subject id %r is not a valid user id", subject)
            return None
        user = db.query(User).filter(User.id == user_id).first()
        if not user:
            logger.info("Subject %s no longer exists", user_id)
            return None
        employee = db.query(Employee).filter(Employee.user_id == user.id).first()
        return Identity(user=user, employee=employee, roles=self._derive(user, employee))

    def _derive(self, user: User, employee: Optional[Employee]) -> RoleSet:
        return derive_roles(
            email=user.email,
            role=user.role,
            is_guest=user.is_guest,
            has_employee_record=employee is not None,
            admin_emails=self.config.admin_email_list,
        )
