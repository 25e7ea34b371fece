from typing import Optional

from sqlalchemy.orm import Session

from portal.core.errors import NotFound, ValidationFailed
from portal.core.timeutils import utcnow
from portal.models.note import AdminNote


def _owned_note(db: Session, owner_id: int, note_id: int) -> AdminNote:
    # A note owned by someone else is reported exactly like a missing one
    note = db.query(AdminNote).filter(AdminNote.id == note_id, AdminNote.user_id == owner_id).first()
    if not note:
        raise NotFound("Note not found")
    return note


def list_notes(db: Session, owner_id: int, limit: Optional[int] = None) -> list[AdminNote]:
    query = (
        db.query(AdminNote)
        .filter(AdminNote.user_id == owner_id)
        .order_by(AdminNote.is_pinned.desc(), AdminNote.updated_at.desc(), AdminNote.id.desc())
    )
    if limit:
        query = query.limit(limit)
    return query.all()


def create_note(
    db: Session, owner_id: int, title: Optional[str], content: Optional[str], color: Optional[str] = None
) -> AdminNote:
    if not title and not content:
        raise ValidationFailed("Title or content required")
    note = AdminNote(user_id=owner_id, title=title or "", content=content or "", color=color or "default")
    db.add(note)
    db.commit()
    db.refresh(note)
    return note


def update_note(db: Session, owner_id: int, note_id: int, changes: dict) -> AdminNote:
    note = _owned_note(db, owner_id, note_id)
    for field in ("title", "content", "color", "is_pinned"):
        if field in changes and changes[field] is not None:
            setattr(note, field, changes[field])
    note.updated_at = utcnow()
    db.commit()
    db.refresh(note)
    return note


def delete_note(db: Session, owner_id: int, note_id: int) -> None:
    note = _owned_note(db, owner_id, note_id)
    db.delete(note)
    db.commit()
