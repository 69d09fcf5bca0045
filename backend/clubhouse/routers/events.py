"""Event API routes — delegates to the reservation engine for capacity rules."""
import logging
from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from clubhouse.database import get_db
from clubhouse.dependencies import require_admin, require_approved, require_signed_in
from clubhouse.schemas.event import (
    CascadeOut,
    EventCreate,
    EventOut,
    EventUpdate,
    RegistrationOut,
    RegistrationStatusOut,
    RSVPOut,
    RSVPRequest,
)
from clubhouse.services import reservations
from clubhouse.services.access_control import AccessDecision

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/", response_model=list[EventOut])
def list_events(include_cancelled: bool = Query(True), db: Session = Depends(get_db)):
    """Events by date, earliest first."""
    return reservations.list_events(db, include_cancelled=include_cancelled)


@router.get("/mine", response_model=list[str])
def list_my_event_ids(decision: AccessDecision = Depends(require_signed_in), db: Session = Depends(get_db)):
    return reservations.list_principal_event_ids(db, decision.principal_id)


@router.post("/reconcile")
def reconcile_registration_counts(decision: AccessDecision = Depends(require_admin), db: Session = Depends(get_db)):
    return {"fixed": reservations.reconcile_registration_counts(db)}


@router.get("/{event_id}", response_model=EventOut)
def get_event(event_id: str, db: Session = Depends(get_db)):
    return reservations.get_event(db, event_id)


@router.post("/", response_model=EventOut, status_code=status.HTTP_201_CREATED)
def create_event(payload: EventCreate, decision: AccessDecision = Depends(require_admin), db: Session = Depends(get_db)):
    return reservations.create_event(db, actor_id=decision.principal_id, **payload.model_dump())


@router.patch("/{event_id}", response_model=EventOut)
def update_event(
    event_id: str,
    payload: EventUpdate,
    decision: AccessDecision = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return reservations.update_event(db, decision.principal_id, event_id, payload.model_dump(exclude_unset=True))


@router.delete("/{event_id}", response_model=CascadeOut)
def delete_event(event_id: str, decision: AccessDecision = Depends(require_admin), db: Session = Depends(get_db)):
    """Delete the event; reports any RSVPs that could not be cleaned up."""
    return reservations.delete_event(db, decision.principal_id, event_id).as_dict()


@router.post("/{event_id}/registration", response_model=EventOut)
def register(event_id: str, decision: AccessDecision = Depends(require_approved), db: Session = Depends(get_db)):
    return reservations.register(db, event_id, decision.principal_id)


@router.delete("/{event_id}/registration", status_code=status.HTTP_204_NO_CONTENT)
def unregister(event_id: str, decision: AccessDecision = Depends(require_signed_in), db: Session = Depends(get_db)):
    reservations.unregister(db, event_id, decision.principal_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{event_id}/registration", response_model=RegistrationStatusOut)
def registration_status(
    event_id: str,
    decision: AccessDecision = Depends(require_signed_in),
    db: Session = Depends(get_db),
):
    return RegistrationStatusOut(
        event_id=event_id,
        registered=reservations.is_registered(db, event_id, decision.principal_id),
    )


@router.put("/{event_id}/rsvp", response_model=RSVPOut)
def set_rsvp(
    event_id: str,
    payload: RSVPRequest,
    decision: AccessDecision = Depends(require_approved),
    db: Session = Depends(get_db),
):
    return reservations.set_rsvp_status(db, event_id, decision.principal_id, payload.status)


@router.get("/{event_id}/registrations", response_model=list[RegistrationOut])
def list_registrations(event_id: str, decision: AccessDecision = Depends(require_admin), db: Session = Depends(get_db)):
    return reservations.list_registrations(db, event_id)
