from fastapi import APIRouter, Depends
from typing import List, Optional

from sos_guardian.schemas.alerts import Notification
from sos_guardian.utils.sos import EmergencySOS, get_sos

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get("/", response_model=List[Notification])
async def get_notifications(limit: Optional[int] = None, sos: EmergencySOS = Depends(get_sos)):
    return sos.notifier.recent(limit)
