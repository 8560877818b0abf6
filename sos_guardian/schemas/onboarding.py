from pydantic import BaseModel, Field


class OnboardingRequest(BaseModel):
    name: str = Field(min_length=1)

class UserPreferences(BaseModel):
    onboarding_complete: bool = False
    user_name: str = ""
    shake_enabled: bool = True

class ShakeToggle(BaseModel):
    enabled: bool
