"""Partners — public list ordered by tier, admin-managed."""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from clubhouse.database import get_db
from clubhouse.dependencies import require_admin
from clubhouse.schemas.reference import PartnerCreate, PartnerOut, PartnerUpdate
from clubhouse.services import reference
from clubhouse.services.access_control import AccessDecision

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/", response_model=list[PartnerOut])
def list_partners(featured: Optional[bool] = Query(None), db: Session = Depends(get_db)):
    return reference.list_partners(db, featured=featured)


@router.post("/", response_model=PartnerOut, status_code=status.HTTP_201_CREATED)
def create_partner(payload: PartnerCreate, decision: AccessDecision = Depends(require_admin), db: Session = Depends(get_db)):
    return reference.create_partner(db, decision.principal_id, payload.model_dump())


@router.patch("/{partner_id}", response_model=PartnerOut)
def update_partner(
    partner_id: str,
    payload: PartnerUpdate,
    decision: AccessDecision = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return reference.update_partner(db, decision.principal_id, partner_id, payload.model_dump(exclude_unset=True))


@router.delete("/{partner_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_partner(partner_id: str, decision: AccessDecision = Depends(require_admin), db: Session = Depends(get_db)):
    reference.delete_partner(db, decision.principal_id, partner_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
