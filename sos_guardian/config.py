import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# ------------------ Database ------------------
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./sos_guardian.db")
SQL_ECHO = os.getenv("SQL_ECHO", "false").lower() in ("1", "true", "yes")

# ------------------ Logging ------------------
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# ------------------ Countdown ------------------
COUNTDOWN_SECONDS = int(os.getenv("COUNTDOWN_SECONDS", 5))
COUNTDOWN_TICK_SECONDS = float(os.getenv("COUNTDOWN_TICK_SECONDS", 1.0))

# ------------------ Shake detection ------------------
# Magnitude of the acceleration vector (gravity included), in m/s^2
SHAKE_THRESHOLD = float(os.getenv("SHAKE_THRESHOLD", 15.0))
SHAKE_DEBOUNCE_SECONDS = float(os.getenv("SHAKE_DEBOUNCE_SECONDS", 1.0))
SHAKE_SAMPLE_WINDOW = int(os.getenv("SHAKE_SAMPLE_WINDOW", 32))

# ------------------ History / feeds ------------------
ALERT_HISTORY_SIZE = int(os.getenv("ALERT_HISTORY_SIZE", 20))
NOTIFICATION_FEED_SIZE = int(os.getenv("NOTIFICATION_FEED_SIZE", 50))

# ------------------ Messages ------------------
MAPS_URL_TEMPLATE = os.getenv("MAPS_URL_TEMPLATE", "https://maps.google.com/?q={lat},{lng}")

# ------------------ Preference keys ------------------
ONBOARDING_KEY = "sos-onboarding"
USERNAME_KEY = "sos-username"
CONTACTS_KEY = "sos-contacts"
SHAKE_ENABLED_KEY = "sos-shake-enabled"
