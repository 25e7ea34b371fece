from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from portal.core.database import get_db
from portal.core.deps import get_current_employee
from portal.core.errors import ValidationFailed
from portal.core.schemas import ApiModel
from portal.models.employee import Employee
from portal.services import staff_service


router = APIRouter()


class EmployeeProfile(ApiModel):
    id: int
    name: str
    email: str
    position: str
    department: str
    hire_date: datetime


class DashboardStats(ApiModel):
    total_projects: int
    active_projects: int
    total_tickets: int
    open_tickets: int
    in_progress_tickets: int


class AssignedProject(ApiModel):
    id: int
    name: str
    description: str
    status: str
    deadline: Optional[datetime] = None
    created_at: datetime


class AssignedTicket(ApiModel):
    id: int
    title: str
    description: str
    priority: str
    status: str
    project_id: Optional[int] = None
    created_at: datetime
    updated_at: datetime


class DashboardOut(ApiModel):
    employee: EmployeeProfile
    stats: DashboardStats
    projects: List[AssignedProject]
    tickets: List[AssignedTicket]


class TicketStatusUpdate(ApiModel):
    status: Optional[str] = None


class TicketStatusOut(ApiModel):
    success: bool = True
    ticket_id: int
    status: str


@router.get("/dashboard", response_model=DashboardOut)
def dashboard(employee: Employee = Depends(get_current_employee), db: Session = Depends(get_db)):
    data = staff_service.employee_dashboard(db, employee)
    return DashboardOut(
        employee=EmployeeProfile.model_validate(data["employee"]),
        stats=DashboardStats(**data["stats"]),
        projects=[AssignedProject.model_validate(project) for project in data["projects"]],
        tickets=[AssignedTicket.model_validate(ticket) for ticket in data["tickets"]],
    )


@router.get("/profile", response_model=EmployeeProfile)
def profile(employee: Employee = Depends(get_current_employee)):
    return EmployeeProfile.model_validate(employee)


@router.put("/tickets/{ticket_id}/status", response_model=TicketStatusOut)
def update_ticket_status(
    ticket_id: int,
    data: TicketStatusUpdate,
    employee: Employee = Depends(get_current_employee),
    db: Session = Depends(get_db),
):
    if not data.status:
        raise ValidationFailed("Ticket status required")
    ticket = staff_service.update_own_ticket_status(db, employee, ticket_id, data.status)
    return TicketStatusOut(ticket_id=ticket.id, status=ticket.status)
