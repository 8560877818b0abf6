import logging
from typing import Any, List, Optional
from sqlalchemy.orm import Session

from sos_guardian.models.models import Preference, AlertEvent, AlertNotification
from sos_guardian.schemas.alerts import Alert
from sos_guardian.utils.alerts import format_alert_message

logger = logging.getLogger(__name__)


# ---------------------------- PREFERENCES ----------------------------
def get_preference(db: Session, key: str, default: Any = None) -> Any:
    pref = db.query(Preference).filter(Preference.key == key).first()
    if pref is None:
        return default
    return pref.value


def get_all_preferences(db: Session) -> dict:
    return {pref.key: pref.value for pref in db.query(Preference).all()}


def set_preference(db: Session, key: str, value: Any) -> Preference:
    pref = db.query(Preference).filter(Preference.key == key).first()
    if pref is None:
        pref = Preference(key=key, value=value)
        db.add(pref)
    else:
        pref.value = value
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(pref)
    return pref


# ---------------------------- ALERTS ----------------------------
def create_alert_record(db: Session, alert: Alert) -> AlertEvent:
    """
    Persist an Alert and one AlertNotification row per delivery.
    Rolls back and re-raises on failure so the caller decides how loud to be.
    """
    location = alert.location
    event = AlertEvent(
        id=alert.id,
        user_name=alert.user_name or None,
        source=alert.source,
        latitude=location.latitude if location else None,
        longitude=location.longitude if location else None,
        accuracy=location.accuracy if location else None,
        message=format_alert_message(alert),
        timestamp=alert.timestamp,
    )
    for delivery in alert.deliveries:
        event.notifications.append(AlertNotification(
            contact_id=delivery.contact_id,
            recipient=delivery.recipient,
            status=delivery.status,
            error=delivery.error,
            timestamp=delivery.timestamp,
        ))

    try:
        db.add(event)
        db.commit()
        db.refresh(event)
    except Exception:
        db.rollback()
        raise

    logger.info("Alert %s logged with %d notification(s)", alert.id, len(alert.deliveries))
    return event


def get_alert_events(db: Session, limit: Optional[int] = None) -> List[AlertEvent]:
    query = db.query(AlertEvent).order_by(AlertEvent.timestamp.desc())
    if limit:
        query = query.limit(limit)
    return query.all()


def get_alert_event(db: Session, alert_id: str) -> Optional[AlertEvent]:
    return db.query(AlertEvent).filter(AlertEvent.id == alert_id).first()


def get_alert_notifications(db: Session, alert_event_id: str) -> List[AlertNotification]:
    return (
        db.query(AlertNotification)
        .filter(AlertNotification.alert_event_id == alert_event_id)
        .order_by(AlertNotification.id)
        .all()
    )
