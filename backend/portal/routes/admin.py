from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from portal.core.database import get_db
from portal.core.deps import require_admin
from portal.core.errors import ValidationFailed
from portal.core.schemas import ApiModel, MessageOut
from portal.services import staff_service
from portal.services.auth_service import normalize_email


# Every route below sits behind the admin gate, checked before the handler body runs
router = APIRouter(dependencies=[Depends(require_admin)])


class EmployeeCreate(ApiModel):
    email: Optional[str] = None
    password: Optional[str] = None
    name: Optional[str] = None
    position: Optional[str] = None
    department: Optional[str] = None


class EmployeeUpdate(ApiModel):
    name: Optional[str] = None
    position: Optional[str] = None
    department: Optional[str] = None


class EmployeeOut(ApiModel):
    id: int
    user_id: int
    email: str
    name: str
    position: str
    department: str
    hire_date: datetime
    assigned_projects: int = 0
    assigned_tickets: int = 0
    created_at: datetime


class EmployeeRef(ApiModel):
    id: int
    name: str


class ProjectCreate(ApiModel):
    name: Optional[str] = None
    description: Optional[str] = None
    status: Optional[str] = None
    deadline: Optional[datetime] = None


class ProjectUpdate(ApiModel):
    name: Optional[str] = None
    description: Optional[str] = None
    status: Optional[str] = None
    deadline: Optional[datetime] = None


class ProjectAssignment(ApiModel):
    employee_ids: List[int]


class ProjectOut(ApiModel):
    id: int
    name: str
    description: str
    status: str
    deadline: Optional[datetime] = None
    assigned_employees: List[EmployeeRef] = []
    created_at: datetime


class TicketCreate(ApiModel):
    title: Optional[str] = None
    description: Optional[str] = None
    priority: Optional[str] = None
    project_id: Optional[int] = None


class TicketUpdate(ApiModel):
    title: Optional[str] = None
    description: Optional[str] = None
    priority: Optional[str] = None
    status: Optional[str] = None


class TicketAssignment(ApiModel):
    employee_id: Optional[int] = None


class TicketOut(ApiModel):
    id: int
    title: str
    description: str
    priority: str
    status: str
    assigned_to: Optional[EmployeeRef] = None
    project_id: Optional[int] = None
    project_name: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class CreatedOut(ApiModel):
    id: int
    message: str


class CustomerOut(ApiModel):
    id: int
    email: str
    name: Optional[str] = None
    is_guest: bool = False
    created_at: datetime


class StatsOut(ApiModel):
    total_customers: int
    guest_sessions: int
    total_employees: int
    total_projects: int
    open_tickets: int


def _clean(value: Optional[str]) -> Optional[str]:
    return value.strip() if value else None


def _ticket_out(ticket) -> TicketOut:
    return TicketOut(
        id=ticket.id,
        title=ticket.title,
        description=ticket.description,
        priority=ticket.priority,
        status=ticket.status,
        assigned_to=EmployeeRef.model_validate(ticket.assignee) if ticket.assignee else None,
        project_id=ticket.project_id,
        project_name=ticket.project.name if ticket.project else None,
        created_at=ticket.created_at,
        updated_at=ticket.updated_at,
    )


@router.get("/employees", response_model=List[EmployeeOut])
def list_employees(db: Session = Depends(get_db)):
    return [
        EmployeeOut(
            id=row["employee"].id,
            user_id=row["employee"].user_id,
            email=row["email"],
            name=row["employee"].name,
            position=row["employee"].position,
            department=row["employee"].department,
            hire_date=row["employee"].hire_date,
            assigned_projects=row["assigned_projects"],
            assigned_tickets=row["assigned_tickets"],
            created_at=row["employee"].created_at,
        )
        for row in staff_service.list_employees(db)
    ]


@router.post("/employees", response_model=CreatedOut, status_code=status.HTTP_201_CREATED)
def create_employee(data: EmployeeCreate, db: Session = Depends(get_db)):
    email = normalize_email(data.email)
    name, position, department = (_clean(v) for v in (data.name, data.position, data.department))
    if not all([email, data.password, name, position, department]):
        raise ValidationFailed("All fields are required")
    employee = staff_service.create_employee(db, email, data.password, name, position, department)
    return CreatedOut(id=employee.id, message="Employee created successfully")


@router.put("/employees/{employee_id}", response_model=MessageOut)
def update_employee(employee_id: int, data: EmployeeUpdate, db: Session = Depends(get_db)):
    staff_service.update_employee(db, employee_id, data.name, data.position, data.department)
    return MessageOut(message="Employee updated")


@router.delete("/employees/{employee_id}", response_model=MessageOut)
def delete_employee(employee_id: int, db: Session = Depends(get_db)):
    staff_service.delete_employee(db, employee_id)
    return MessageOut(message="Employee deleted")


@router.get("/projects", response_model=List[ProjectOut])
def list_projects(db: Session = Depends(get_db)):
    return [ProjectOut.model_validate(project) for project in staff_service.list_projects(db)]


@router.post("/projects", response_model=CreatedOut, status_code=status.HTTP_201_CREATED)
def create_project(data: ProjectCreate, db: Session = Depends(get_db)):
    if not data.name or not data.description:
        raise ValidationFailed("Name and description are required")
    project = staff_service.create_project(db, data.name, data.description, data.status, data.deadline)
    return CreatedOut(id=project.id, message="Project created successfully")


@router.put("/projects/{project_id}", response_model=MessageOut)
def update_project(project_id: int, data: ProjectUpdate, db: Session = Depends(get_db)):
    staff_service.update_project(db, project_id, data.name, data.description, data.status, data.deadline)
    return MessageOut(message="Project updated")


@router.put("/projects/{project_id}/assignments", response_model=MessageOut)
def assign_project(project_id: int, data: ProjectAssignment, db: Session = Depends(get_db)):
    staff_service.assign_project(db, project_id, data.employee_ids)
    return MessageOut(message="Project assignments updated")


@router.delete("/projects/{project_id}", response_model=MessageOut)
def delete_project(project_id: int, db: Session = Depends(get_db)):
    staff_service.delete_project(db, project_id)
    return MessageOut(message="Project deleted")


@router.get("/tickets", response_model=List[TicketOut])
def list_tickets(db: Session = Depends(get_db)):
    return [_ticket_out(ticket) for ticket in staff_service.list_tickets(db)]


@router.post("/tickets", response_model=CreatedOut, status_code=status.HTTP_201_CREATED)
def create_ticket(data: TicketCreate, db: Session = Depends(get_db)):
    if not data.title or not data.description:
        raise ValidationFailed("Title and description are required")
    ticket = staff_service.create_ticket(db, data.title, data.description, data.priority, data.project_id)
    return CreatedOut(id=ticket.id, message="Ticket created successfully")


@router.put("/tickets/{ticket_id}", response_model=MessageOut)
def update_ticket(ticket_id: int, data: TicketUpdate, db: Session = Depends(get_db)):
    staff_service.update_ticket(db, ticket_id, data.title, data.description, data.priority, data.status)
    return MessageOut(message="Ticket updated")


@router.put("/tickets/{ticket_id}/assignment", response_model=MessageOut)
def assign_ticket(ticket_id: int, data: TicketAssignment, db: Session = Depends(get_db)):
    staff_service.assign_ticket(db, ticket_id, data.employee_id)
    return MessageOut(message="Ticket assignment updated")


@router.delete("/tickets/{ticket_id}", response_model=MessageOut)
def delete_ticket(ticket_id: int, db: Session = Depends(get_db)):
    staff_service.delete_ticket(db, ticket_id)
    return MessageOut(message="Ticket deleted")


@router.get("/customers", response_model=List[CustomerOut])
def list_customers(db: Session = Depends(get_db)):
    return [CustomerOut.model_validate(user) for user in staff_service.list_customers(db)]


@router.get("/stats", response_model=StatsOut)
def stats(db: Session = Depends(get_db)):
    return StatsOut(**staff_service.overview_stats(db))
