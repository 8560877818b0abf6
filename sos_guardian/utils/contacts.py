import logging
import time
from typing import List, Optional

from pydantic import ValidationError

from sos_guardian.config import CONTACTS_KEY
from sos_guardian.schemas.emergency_contacts import EmergencyContact, EmergencyContactCreate
from sos_guardian.utils.preferences import PersistedPreferences

logger = logging.getLogger(__name__)


def _with_single_primary(contacts: List[EmergencyContact], primary_id: Optional[str] = None) -> List[EmergencyContact]:
    """
    Return copies of `contacts` where exactly one entry is primary.
    `primary_id` wins when present; otherwise the first flagged contact, otherwise the first contact.
    """
    if not contacts:
        return []
    ids = [c.id for c in contacts]
    if primary_id not in ids:
        primary_id = next((c.id for c in contacts if c.is_primary), ids[0])
    return [c.model_copy(update={"is_primary": c.id == primary_id}) for c in contacts]


class ContactRegistry:
    """
    Ordered emergency contacts, written through to PersistedPreferences.

    Every mutation builds the complete new list first and swaps it in with a
    single assignment, so readers never see a non-empty list without a primary.
    """

    def __init__(self, preferences: PersistedPreferences):
        self._preferences = preferences
        self._last_id = 0
        self._contacts: List[EmergencyContact] = self._load()

    def _load(self) -> List[EmergencyContact]:
        contacts = []
        for raw in self._preferences.get(CONTACTS_KEY, []) or []:
            try:
                contacts.append(EmergencyContact.model_validate(raw))
            except ValidationError as e:
                logger.warning("Skipping unreadable stored contact %r: %s", raw, e)

        for contact in contacts:
            if contact.id.isdigit():
                self._last_id = max(self._last_id, int(contact.id))

        healed = _with_single_primary(contacts)
        if [c.is_primary for c in healed] != [c.is_primary for c in contacts]:
            logger.warning("Stored contacts had no single primary; repaired")
            self._persist(healed)
        return healed

    def _persist(self, contacts: List[EmergencyContact]):
        """Write `contacts` through, then swap them in. A failed write leaves the registry untouched."""
        self._preferences.set(CONTACTS_KEY, [c.model_dump(mode="json") for c in contacts])
        self._contacts = contacts

    def _next_id(self) -> str:
        # Millisecond timestamp, bumped so ids stay unique within one millisecond
        candidate = max(time.time_ns() // 1_000_000, self._last_id + 1)
        self._last_id = candidate
        return str(candidate)

    # ---------------- READ ----------------
    @property
    def contacts(self) -> List[EmergencyContact]:
        return list(self._contacts)

    @property
    def primary(self) -> Optional[EmergencyContact]:
        return next((c for c in self._contacts if c.is_primary), None)

    def get(self, contact_id: str) -> Optional[EmergencyContact]:
        return next((c for c in self._contacts if c.id == contact_id), None)

    def recipients(self) -> List[EmergencyContact]:
        """Primary first, then the rest in insertion order."""
        contacts = list(self._contacts)
        return [c for c in contacts if c.is_primary] + [c for c in contacts if not c.is_primary]

    def __len__(self) -> int:
        return len(self._contacts)

    def __bool__(self) -> bool:
        return bool(self._contacts)

    # ---------------- MUTATIONS ----------------
    def add_contact(self, data: EmergencyContactCreate) -> EmergencyContact:
        contact = EmergencyContact(id=self._next_id(), **data.model_dump())
        primary_id = contact.id if contact.is_primary else None
        self._persist(_with_single_primary(self._contacts + [contact], primary_id))
        logger.info("Contact %s (%s) added", contact.id, contact.name)
        return self.get(contact.id)

    def set_primary(self, contact_id: str) -> bool:
        if self.get(contact_id) is None:
            logger.info("set_primary ignored, contact %s not found", contact_id)
            return False
        self._persist(_with_single_primary(self._contacts, contact_id))
        logger.info("Contact %s is now primary", contact_id)
        return True

    def remove_contact(self, contact_id: str) -> Optional[EmergencyContact]:
        removed = self.get(contact_id)
        if removed is None:
            logger.info("remove_contact ignored, contact %s not found", contact_id)
            return None
        remaining = [c for c in self._contacts if c.id != contact_id]
        self._persist(_with_single_primary(remaining))
        if removed.is_primary and self._contacts:
            logger.info("Primary %s removed, promoted %s", contact_id, self._contacts[0].id)
        else:
            logger.info("Contact %s removed", contact_id)
        return removed
