import logging
from fastapi import APIRouter, Depends, status

from sos_guardian.schemas.onboarding import OnboardingRequest, UserPreferences
from sos_guardian.utils.sos import EmergencySOS, get_sos

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/onboarding", tags=["Onboarding"])


@router.get("/", response_model=UserPreferences)
def get_onboarding(sos: EmergencySOS = Depends(get_sos)):
    return sos.preferences.snapshot()


@router.post("/", response_model=UserPreferences, status_code=status.HTTP_201_CREATED)
def complete_onboarding(request: OnboardingRequest, sos: EmergencySOS = Depends(get_sos)):
    """
    Finish onboarding.
    - Stores the user name sent with every alert.
    - Enables shake detection if the toggle is on.
    """
    sos.complete_onboarding(request.name)
    logger.info("Onboarding completed for %s", request.name)
    return sos.preferences.snapshot()
