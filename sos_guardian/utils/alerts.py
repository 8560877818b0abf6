import logging
from typing import Protocol

from sos_guardian.config import MAPS_URL_TEMPLATE
from sos_guardian.schemas.alerts import Alert
from sos_guardian.schemas.emergency_contacts import EmergencyContact

logger = logging.getLogger(__name__)


# ---------------- ALERT MESSAGE FORMATTING ----------------
def location_url(alert: Alert):
    if alert.location is None:
        return None
    return MAPS_URL_TEMPLATE.format(lat=alert.location.latitude, lng=alert.location.longitude)


def format_alert_message(alert: Alert) -> str:
    """
    Returns the human-readable SOS text sent to each contact.

    Uses:
    - 'user_name' (falls back to "Unknown User")
    - 'timestamp' in UTC
    - optional location as a map link, with accuracy when known
    """
    user_name = alert.user_name or "Unknown User"

    msg_lines = [
        f"🚨 SOS Alert from {user_name}!",
        f"Emergency triggered at {alert.timestamp.strftime('%Y-%m-%d %H:%M:%S UTC')}",
    ]

    url = location_url(alert)
    if url:
        line = f"📍 Location: {url}"
        if alert.location.accuracy is not None:
            line += f" (±{round(alert.location.accuracy)} m)"
        msg_lines.append(line)
    else:
        msg_lines.append("📍 Location unavailable")

    return "\n".join(msg_lines)


# ---------------- ALERT DISPATCH ----------------
class AlertDispatcher(Protocol):
    """
    Delivery channel for one recipient. Raising means the delivery failed;
    returning normally means it was accepted.
    """

    async def send(self, alert: Alert, contact: EmergencyContact) -> None:
        ...


class LogDispatcher:
    """Writes the outgoing SOS text to the log instead of a carrier."""

    async def send(self, alert: Alert, contact: EmergencyContact) -> None:
        if not contact.phone_number:
            raise ValueError(f"Contact {contact.id} has no phone number")
        message = format_alert_message(alert)
        logger.info("📤 SOS for %s (%s):\n%s", contact.name, contact.phone_number, message)
