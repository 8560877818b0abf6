from fastapi import APIRouter, Depends, HTTPException, status
from typing import List

from sos_guardian.schemas import emergency_contacts as schema
from sos_guardian.utils.sos import EmergencySOS, get_sos

router = APIRouter(
    prefix="/emergency_contacts",
    tags=["Emergency Contacts"],
)

# ---------------- CREATE CONTACT ----------------
@router.post("/", response_model=schema.EmergencyContact, status_code=status.HTTP_201_CREATED)
def create_emergency_contact(
    contact: schema.EmergencyContactCreate,
    sos: EmergencySOS = Depends(get_sos)
):
    """
    Add an emergency contact.
    - The first contact always becomes primary.
    - `is_primary=true` makes the new contact the only primary.
    """
    return sos.add_contact(contact)


# ---------------- GET ALL CONTACTS ----------------
@router.get("/", response_model=List[schema.EmergencyContact])
def get_all_emergency_contacts(sos: EmergencySOS = Depends(get_sos)):
    return sos.registry.contacts


# ---------------- GET SINGLE CONTACT ----------------
@router.get("/{contact_id}", response_model=schema.EmergencyContact)
def get_emergency_contact(contact_id: str, sos: EmergencySOS = Depends(get_sos)):
    contact = sos.registry.get(contact_id)
    if not contact:
        raise HTTPException(status_code=404, detail=f"Emergency contact {contact_id} not found")
    return contact


# ---------------- SET PRIMARY ----------------
@router.put("/{contact_id}/primary", response_model=List[schema.EmergencyContact])
def set_primary_contact(contact_id: str, sos: EmergencySOS = Depends(get_sos)):
    """
    Make a contact the primary recipient.
    - Unknown ids are ignored (a stale id from a racing client is not an error).
    """
    sos.set_primary(contact_id)
    return sos.registry.contacts


# ---------------- DELETE CONTACT ----------------
@router.delete("/{contact_id}", status_code=status.HTTP_200_OK)
def delete_emergency_contact(contact_id: str, sos: EmergencySOS = Depends(get_sos)):
    """
    Remove a contact.
    - Removing the primary promotes the first remaining contact.
    """
    removed = sos.remove_contact(contact_id)
    if removed is None:
        return {"detail": "Emergency contact not found, nothing removed"}
    return {"detail": "Emergency contact deleted"}
