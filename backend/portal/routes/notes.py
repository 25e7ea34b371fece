from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from portal.core.database import get_db
from portal.core.deps import require_admin
from portal.core.identity import Identity
from portal.core.schemas import ApiModel
from portal.services import note_service


router = APIRouter()

RECENT_NOTES_LIMIT = 5


class NoteCreate(ApiModel):
    title: Optional[str] = None
    content: Optional[str] = None
    color: Optional[str] = None


class NoteUpdate(ApiModel):
    title: Optional[str] = None
    content: Optional[str] = None
    color: Optional[str] = None
    is_pinned: Optional[bool] = None


class NoteOut(ApiModel):
    id: int
    title: str
    content: str
    color: str
    is_pinned: bool
    created_at: datetime
    updated_at: datetime


@router.get("", response_model=List[NoteOut])
def list_notes(identity: Identity = Depends(require_admin), db: Session = Depends(get_db)):
    return [NoteOut.model_validate(note) for note in note_service.list_notes(db, identity.user_id)]


@router.get("/recent", response_model=List[NoteOut])
def recent_notes(identity: Identity = Depends(require_admin), db: Session = Depends(get_db)):
    notes = note_service.list_notes(db, identity.user_id, limit=RECENT_NOTES_LIMIT)
    return [NoteOut.model_validate(note) for note in notes]


@router.post("", response_model=NoteOut, status_code=status.HTTP_201_CREATED)
def create_note(data: NoteCreate, identity: Identity = Depends(require_admin), db: Session = Depends(get_db)):
    note = note_service.create_note(db, identity.user_id, data.title, data.content, data.color)
    return NoteOut.model_validate(note)


@router.put("/{note_id}", response_model=NoteOut)
def update_note(
    note_id: int,
    data: NoteUpdate,
    identity: Identity = Depends(require_admin),
    db: Session = Depends(get_db),
):
    note = note_service.update_note(db, identity.user_id, note_id, data.model_dump(exclude_unset=True))
    return NoteOut.model_validate(note)


@router.delete("/{note_id}")
def delete_note(note_id: int, identity: Identity = Depends(require_admin), db: Session = Depends(get_db)):
    note_service.delete_note(db, identity.user_id, note_id)
    return {"success": True}
