from .base import Base
from .user import User
from .employee import Employee
from .project import Project, project_assignments
from .ticket import Ticket
from .note import AdminNote

__all__ = ["Base", "User", "Employee", "Project", "project_assignments", "Ticket", "AdminNote"]
