import logging
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List

from sos_guardian.crud.crud import get_alert_events, get_alert_event, get_alert_notifications
from sos_guardian.database.database import get_db
from sos_guardian.schemas.alerts import ActivationStatusOut, AlertEventOut, AlertNotificationOut
from sos_guardian.schemas.enums import TriggerSource
from sos_guardian.utils.sos import EmergencySOS, get_sos

router = APIRouter(
    prefix="/sos",
    tags=["SOS"],
    responses={404: {"description": "Not found"}},
)

logger = logging.getLogger(__name__)

# ---------------- TRIGGER SOS ----------------
@router.post("/", response_model=ActivationStatusOut, status_code=status.HTTP_202_ACCEPTED)
async def trigger_sos(sos: EmergencySOS = Depends(get_sos)):
    """
    Manual SOS button: starts the countdown.
    - 409 when no emergency contacts are configured.
    - A trigger while a countdown is already running is a no-op.
    """
    if not sos.registry:
        sos.trigger(TriggerSource.MANUAL)  # records the "no contacts" notification
        raise HTTPException(status_code=409, detail="No emergency contacts configured")

    sos.trigger(TriggerSource.MANUAL)
    return sos.session.status()


# ---------------- CANCEL SOS ----------------
@router.post("/cancel", response_model=ActivationStatusOut)
async def cancel_sos(sos: EmergencySOS = Depends(get_sos)):
    if not sos.cancel():
        logger.info("Cancel ignored in state %s", sos.session.state.value)
    return sos.session.status()


# ---------------- STATUS ----------------
@router.get("/status", response_model=ActivationStatusOut)
async def get_sos_status(sos: EmergencySOS = Depends(get_sos)):
    return sos.session.status()


# ---------------- ALERT LOG ----------------
@router.get("/alerts", response_model=List[AlertEventOut])
def get_sos_alerts(limit: int = 20, db: Session = Depends(get_db)):
    return [AlertEventOut.model_validate(a, from_attributes=True) for a in get_alert_events(db, limit)]


@router.get("/alerts/{alert_id}/notifications", response_model=List[AlertNotificationOut])
def get_sos_alert_notifications(alert_id: str, db: Session = Depends(get_db)):
    if not get_alert_event(db, alert_id):
        raise HTTPException(status_code=404, detail="Alert not found")
    return [AlertNotificationOut.model_validate(n, from_attributes=True) for n in get_alert_notifications(db, alert_id)]
