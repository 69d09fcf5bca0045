"""Useful links — public list, admin-managed."""
import logging
from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from clubhouse.database import get_db
from clubhouse.dependencies import require_admin
from clubhouse.schemas.reference import LinkCreate, LinkOut
from clubhouse.services import reference
from clubhouse.services.access_control import AccessDecision

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/", response_model=list[LinkOut])
def list_links(db: Session = Depends(get_db)):
    return reference.list_links(db)


@router.post("/", response_model=LinkOut, status_code=status.HTTP_201_CREATED)
def create_link(payload: LinkCreate, decision: AccessDecision = Depends(require_admin), db: Session = Depends(get_db)):
    return reference.create_link(db, decision.principal_id, payload.title, payload.url)


@router.delete("/{link_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_link(link_id: str, decision: AccessDecision = Depends(require_admin), db: Session = Depends(get_db)):
    reference.delete_link(db, decision.principal_id, link_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
