from sqlalchemy import (
    Column, Integer, String, Float, DateTime, ForeignKey, Text, JSON, Enum as SQLEnum
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from sos_guardian.database.database import Base
from sos_guardian.schemas.enums import AlertStatus, TriggerSource

# ---------- PREFERENCE ----------
class Preference(Base):
    __tablename__ = "preferences"

    key = Column(String, primary_key=True, index=True)
    value = Column(JSON, nullable=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)


# ---------- ALERT EVENT ----------
class AlertEvent(Base):
    __tablename__ = "alert_events"

    id = Column(String, primary_key=True, index=True)
    user_name = Column(String, nullable=True)
    source = Column(SQLEnum(TriggerSource), nullable=False, default=TriggerSource.MANUAL)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    accuracy = Column(Float, nullable=True)
    message = Column(Text, nullable=True)
    timestamp = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)

    notifications = relationship("AlertNotification", back_populates="alert_event", cascade="all, delete-orphan")


# ---------- ALERT NOTIFICATION ----------
class AlertNotification(Base):
    __tablename__ = "alert_notifications"

    id = Column(Integer, primary_key=True, index=True)
    alert_event_id = Column(String, ForeignKey("alert_events.id", ondelete="CASCADE"), nullable=False, index=True)
    contact_id = Column(String, nullable=True)
    recipient = Column(String, nullable=True)
    status = Column(SQLEnum(AlertStatus), default=AlertStatus.PENDING, nullable=False, index=True)
    error = Column(Text, nullable=True)
    timestamp = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)

    alert_event = relationship("AlertEvent", back_populates="notifications")
