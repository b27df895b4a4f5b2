"""
Event Type Endpoints

The kinds of events a studio shoots. Codes are unique per tenant.

RBAC: list/get VIEW_CONTENT, create CREATE_CONTENT, update EDIT_CONTENT,
delete DELETE_CONTENT. Records of another tenant answer 403.
"""
from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.orm import Session
from typing import Optional

from studio_api.database import get_db
from studio_api.models.event import Event
from studio_api.schemas.event import EventCreate, EventUpdate, EventResponse, EventListResponse
from studio_api.api.deps import require_permission, ensure_tenant_access, resolve_tenant
from studio_api.core.permissions import Permission
from studio_api.core.exceptions import EventNotFoundError, ConflictError
from studio_api.services.auth import Principal
from studio_api.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/events", tags=["events"])


def _load_event(db: Session, principal: Principal, event_id: str) -> Event:
    event = db.query(Event).filter(Event.id == event_id).first()
    if not event:
        raise EventNotFoundError(event_id)
    ensure_tenant_access(principal, event.tenant_id)
    return event


def _ensure_code_free(db: Session, tenant_id: str, event_code: str, exclude_id: Optional[str] = None) -> None:
    query = db.query(Event).filter(Event.tenant_id == tenant_id, Event.event_code == event_code)
    if exclude_id:
        query = query.filter(Event.id != exclude_id)
    if query.first():
        raise ConflictError("Event code already exists")


@router.get("", response_model=EventListResponse)
async def list_events(
    tenant_id: Optional[str] = Query(None, description="Superadmin only"),
    principal: Principal = Depends(require_permission(Permission.VIEW_CONTENT)),
    db: Session = Depends(get_db)
):
    tenant_id = resolve_tenant(principal, tenant_id)
    events = db.query(Event).filter(
        Event.tenant_id == tenant_id
    ).order_by(Event.created_at.desc()).all()
    return EventListResponse(events=events, count=len(events))


@router.get("/{event_id}", response_model=EventResponse)
async def get_event(
    event_id: str,
    principal: Principal = Depends(require_permission(Permission.VIEW_CONTENT)),
    db: Session = Depends(get_db)
):
    return _load_event(db, principal, event_id)


@router.post("", response_model=EventResponse, status_code=status.HTTP_201_CREATED)
async def create_event(
    event_data: EventCreate,
    principal: Principal = Depends(require_permission(Permission.CREATE_CONTENT)),
    db: Session = Depends(get_db)
):
    """Create an event type in the caller's tenant."""
    event_code = event_data.event_code.strip()
    _ensure_code_free(db, principal.tenant_id, event_code)

    event = Event(
        tenant_id=principal.tenant_id,
        event_code=event_code,
        description=event_data.description,
        alias=event_data.alias,
    )
    db.add(event)
    db.commit()
    db.refresh(event)

    logger.info(f"Event created: {event.id} by {principal.user_id}")
    return event


@router.patch("/{event_id}", response_model=EventResponse)
async def update_event(
    event_id: str,
    event_data: EventUpdate,
    principal: Principal = Depends(require_permission(Permission.EDIT_CONTENT)),
    db: Session = Depends(get_db)
):
    event = _load_event(db, principal, event_id)

    update_data = event_data.model_dump(exclude_unset=True)
    if update_data.get("event_code"):
        update_data["event_code"] = update_data["event_code"].strip()
        _ensure_code_free(db, event.tenant_id, update_data["event_code"], exclude_id=event.id)

    for field, value in update_data.items():
        if value is not None:
            setattr(event, field, value)

    db.commit()
    db.refresh(event)

    logger.info(f"Event updated: {event.id} by {principal.user_id}")
    return event


@router.delete("/{event_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_event(
    event_id: str,
    principal: Principal = Depends(require_permission(Permission.DELETE_CONTENT)),
    db: Session = Depends(get_db)
):
    event = _load_event(db, principal, event_id)
    db.delete(event)
    db.commit()

    logger.info(f"Event deleted: {event_id} by {principal.user_id}")
    return None
