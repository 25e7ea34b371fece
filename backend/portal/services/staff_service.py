from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from portal.core.errors import Conflict, NotFound, ValidationFailed
from portal.core.roles import Role
from portal.core.security import hash_password
from portal.core.timeutils import utcnow
from portal.models.employee import Employee
from portal.models.project import PROJECT_STATUSES, Project, project_assignments
from portal.models.ticket import TICKET_PRIORITIES, TICKET_STATUSES, Ticket
from portal.models.user import User
from portal.services.auth_service import normalize_email


logger = logging.getLogger(__name__)


def _check_choice(value: Optional[str], choices: Iterable[str], label: str) -> None:
    if value is not None and value not in choices:
        raise ValidationFailed(f"Invalid {label}")


def _get_or_404(db: Session, model, object_id: int, label: str):
    obj = db.query(model).filter(model.id == object_id).first()
    if not obj:
        raise NotFound(f"{label} not found")
    return obj


# Employees

def list_employees(db: Session) -> list[dict]:
    project_counts = dict(
        db.query(project_assignments.c.employee_id, func.count(project_assignments.c.project_id))
        .group_by(project_assignments.c.employee_id)
        .all()
    )
    ticket_counts = dict(
        db.query(Ticket.assigned_to, func.count(Ticket.id))
        .filter(Ticket.assigned_to.isnot(None))
        .group_by(Ticket.assigned_to)
        .all()
    )
    employees = db.query(Employee).order_by(Employee.created_at.desc(), Employee.id.desc()).all()
    return [
        {
            "employee": emp,
            "email": emp.user.email if emp.user else emp.email,
            "assigned_projects": project_counts.get(emp.id, 0),
            "assigned_tickets": ticket_counts.get(emp.id, 0),
        }
        for emp in employees
    ]


def create_employee(
    db: Session, email: str, password: str, name: str, position: str, department: str
) -> Employee:
    """Provision staff membership, creating the underlying user when the email is new."""
    normalized = normalize_email(email)
    if not normalized:
        raise ValidationFailed("All fields are required")
    user = db.query(User).filter(User.email == normalized).first()
    if user:
        if db.query(Employee).filter(Employee.user_id == user.id).first():
            raise Conflict("User is already an employee")
    else:
        user = User(
            email=normalized,
            password_hash=hash_password(password),
            name=name,
            role=Role.employee.value,
        )
        db.add(user)
        db.flush()

    employee = Employee(
        user_id=user.id,
        email=normalized,
        name=name,
        position=position,
        department=department,
    )
    db.add(employee)
    db.commit()
    db.refresh(employee)
    logger.info("Employee %s provisioned for user %s", employee.id, user.id)
    return employee


def update_employee(
    db: Session,
    employee_id: int,
    name: Optional[str] = None,
    position: Optional[str] = None,
    department: Optional[str] = None,
) -> Employee:
    employee = _get_or_404(db, Employee, employee_id, "Employee")
    if name:
        employee.name = name
    if position:
        employee.position = position
    if department:
        employee.department = department
    employee.updated_at = utcnow()
    db.commit()
    db.refresh(employee)
    return employee


def delete_employee(db: Session, employee_id: int) -> None:
    """Delete a staff record and clear every reference to it.

    Project assignments and ticket assignees are cleaned up explicitly before the
    row goes. The user and its role marker are left as they are; the employee
    portal needs an actual staff record, so access ends on the next request.
    """
    employee = _get_or_404(db, Employee, employee_id, "Employee")

    db.execute(project_assignments.delete().where(project_assignments.c.employee_id == employee.id))
    db.query(Ticket).filter(Ticket.assigned_to == employee.id).update(
        {Ticket.assigned_to: None, Ticket.updated_at: utcnow()}, synchronize_session=False
    )
    db.delete(employee)
    db.commit()
    logger.info("Employee %s deleted", employee_id)


# Projects

def list_projects(db: Session) -> list[Project]:
    return db.query(Project).order_by(Project.created_at.desc(), Project.id.desc()).all()


def create_project(
    db: Session, name: str, description: str, status: Optional[str] = None, deadline: Optional[datetime] = None
) -> Project:
    _check_choice(status, PROJECT_STATUSES, "project status")
    project = Project(name=name, description=description, status=status or "planning", deadline=deadline)
    db.add(project)
    db.commit()
    db.refresh(project)
    return project


def update_project(
    db: Session,
    project_id: int,
    name: Optional[str] = None,
    description: Optional[str] = None,
    status: Optional[str] = None,
    deadline: Optional[datetime] = None,
) -> Project:
    _check_choice(status, PROJECT_STATUSES, "project status")
    project = _get_or_404(db, Project, project_id, "Project")
    if name:
        project.name = name
    if description:
        project.description = description
    if status:
        project.status = status
    if deadline:
        project.deadline = deadline
    project.updated_at = utcnow()
    db.commit()
    db.refresh(project)
    return project


def assign_project(db: Session, project_id: int, employee_ids: list[int]) -> Project:
    project = _get_or_404(db, Project, project_id, "Project")
    wanted = list(dict.fromkeys(employee_ids))
    employees = db.query(Employee).filter(Employee.id.in_(wanted)).all() if wanted else []
    if len(employees) != len(wanted):
        raise ValidationFailed("Unknown employee id(s)")
    project.assigned_employees = employees
    project.updated_at = utcnow()
    db.commit()
    db.refresh(project)
    return project


def delete_project(db: Session, project_id: int) -> None:
    project = _get_or_404(db, Project, project_id, "Project")
    db.query(Ticket).filter(Ticket.project_id == project.id).update(
        {Ticket.project_id: None}, synchronize_session=False
    )
    project.assigned_employees = []
    db.delete(project)
    db.commit()


# Tickets

def list_tickets(db: Session) -> list[Ticket]:
    return db.query(Ticket).order_by(Ticket.created_at.desc(), Ticket.id.desc()).all()


def create_ticket(
    db: Session, title: str, description: str, priority: Optional[str] = None, project_id: Optional[int] = None
) -> Ticket:
    _check_choice(priority, TICKET_PRIORITIES, "priority")
    if project_id is not None:
        _get_or_404(db, Project, project_id, "Project")
    ticket = Ticket(
        title=title,
        description=description,
        priority=priority or "medium",
        status="open",
        project_id=project_id,
    )
    db.add(ticket)
    db.commit()
    db.refresh(ticket)
    return ticket


def update_ticket(
    db: Session,
    ticket_id: int,
    title: Optional[str] = None,
    description: Optional[str] = None,
    priority: Optional[str] = None,
    status: Optional[str] = None,
) -> Ticket:
    _check_choice(priority, TICKET_PRIORITIES, "priority")
    _check_choice(status, TICKET_STATUSES, "status")
    ticket = _get_or_404(db, Ticket, ticket_id, "Ticket")
    if title:
        ticket.title = title
    if description:
        ticket.description = description
    if priority:
        ticket.priority = priority
    if status:
        ticket.status = status
    ticket.updated_at = utcnow()
    db.commit()
    db.refresh(ticket)
    return ticket


def assign_ticket(db: Session, ticket_id: int, employee_id: Optional[int]) -> Ticket:
    ticket = _get_or_404(db, Ticket, ticket_id, "Ticket")
    if employee_id is not None:
        _get_or_404(db, Employee, employee_id, "Employee")
    ticket.assigned_to = employee_id
    ticket.updated_at = utcnow()
    db.commit()
    db.refresh(ticket)
    return ticket


def delete_ticket(db: Session, ticket_id: int) -> None:
    ticket = _get_or_404(db, Ticket, ticket_id, "Ticket")
    db.delete(ticket)
    db.commit()


# Employee portal

def employee_dashboard(db: Session, employee: Employee) -> dict:
    projects = (
        db.query(Project)
        .join(project_assignments, project_assignments.c.project_id == Project.id)
        .filter(project_assignments.c.employee_id == employee.id)
        .order_by(Project.created_at.desc(), Project.id.desc())
        .all()
    )
    tickets = (
        db.query(Ticket)
        .filter(Ticket.assigned_to == employee.id)
        .order_by(Ticket.created_at.desc(), Ticket.id.desc())
        .all()
    )
    stats = {
        "total_projects": len(projects),
        "active_projects": sum(1 for p in projects if p.status == "in-progress"),
        "total_tickets": len(tickets),
        "open_tickets": sum(1 for t in tickets if t.status == "open"),
        "in_progress_tickets": sum(1 for t in tickets if t.status == "in-progress"),
    }
    return {"employee": employee, "stats": stats, "projects": projects, "tickets": tickets}


def update_own_ticket_status(db: Session, employee: Employee, ticket_id: int, status: str) -> Ticket:
    if status not in TICKET_STATUSES:
        raise ValidationFailed("Invalid status")
    ticket = db.query(Ticket).filter(Ticket.id == ticket_id, Ticket.assigned_to == employee.id).first()
    if not ticket:
        raise NotFound("Ticket not found or not assigned to you")
    ticket.status = status
    ticket.updated_at = utcnow()
    db.commit()
    db.refresh(ticket)
    return ticket


# Back-office overview

def list_customers(db: Session) -> list[User]:
    return db.query(User).order_by(User.created_at.desc(), User.id.desc()).all()


def overview_stats(db: Session) -> dict:
    return {
        "total_customers": db.query(func.count(User.id)).filter(User.is_guest.is_(False)).scalar() or 0,
        "guest_sessions": db.query(func.count(User.id)).filter(User.is_guest.is_(True)).scalar() or 0,
        "total_employees": db.query(func.count(Employee.id)).scalar() or 0,
        "total_projects": db.query(func.count(Project.id)).scalar() or 0,
        "open_tickets": db.query(func.count(Ticket.id)).filter(Ticket.status == "open").scalar() or 0,
    }
