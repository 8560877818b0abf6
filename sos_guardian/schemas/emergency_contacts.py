from pydantic import BaseModel
from typing import Optional

# ------------------ EMERGENCY CONTACT ------------------
class EmergencyContactBase(BaseModel):
    name: str
    phone_number: str
    relation_type: Optional[str] = None

class EmergencyContactCreate(EmergencyContactBase):
    is_primary: bool = False

class EmergencyContact(EmergencyContactBase):
    id: str
    is_primary: bool = False

    model_config = {"from_attributes": True}
