from enum import Enum

# ------------------ ACTIVATION ------------------
class ActivationState(str, Enum):
    IDLE = "idle"
    COUNTING = "counting"
    DISPATCHING = "dispatching"
    CANCELLED = "cancelled"
    COMPLETED = "completed"

class TriggerSource(str, Enum):
    SHAKE = "shake"
    MANUAL = "manual"

# ------------------ ALERT ------------------
class AlertStatus(str, Enum):
    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"

# ------------------ NOTIFICATIONS ------------------
class NotificationLevel(str, Enum):
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"

# ------------------ PERMISSIONS ------------------
class PermissionState(str, Enum):
    UNKNOWN = "unknown"
    GRANTED = "granted"
    DENIED = "denied"
