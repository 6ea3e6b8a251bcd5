"""Constants for Medication Schedule."""
from datetime import timedelta

# Integration domain must match the folder name under custom_components
DOMAIN = "medication_schedule"

# Storage
PROFILE_STORE_KEY = f"{DOMAIN}.profile"
MEDICATIONS_STORE_KEY = f"{DOMAIN}.medications"
STORE_VERSION = 1

# Clock cadence; must stay at or below one minute
CLOCK_INTERVAL = timedelta(seconds=30)

# Due window: 5 minutes before through 14 minutes after the scheduled time
DUE_LEAD_MINUTES = 5
DUE_GRACE_MINUTES = 15

# Ordering key for medications with nothing left to take
NO_PENDING_DOSE = "23:59"

# Profile
CONF_PROFILE_NAME = "name"
CONF_AVATAR = "avatar"
CONF_API_KEY = "api_key"
CONF_LANGUAGE = "language"

AVATARS = ["👵", "👴", "😊", "💖", "⭐", "🤖"]
DEFAULT_AVATAR = "👵"

LANGUAGE_PT_BR = "pt-BR"
LANGUAGE_EN = "en"
LANGUAGES = [LANGUAGE_PT_BR, LANGUAGE_EN]
DEFAULT_LANGUAGE = LANGUAGE_PT_BR

# Common attribute / service field keys
ATTR_MEDICATION_ID = "medication_id"
ATTR_DOSE_ID = "dose_id"
ATTR_NAME = "name"
ATTR_DOSAGE = "dosage"
ATTR_TIMES = "times"
ATTR_DOSES = "doses"
ATTR_NEXT_DOSE = "next_dose"
ATTR_RANK = "rank"
ATTR_CURRENT_TIME = "current_time"
ATTR_ORDER = "order"
ATTR_AVATAR = "avatar"
ATTR_INFO = "info"

# Services
SERVICE_ADD_MEDICATION = "add_medication"
SERVICE_UPDATE_MEDICATION = "update_medication"
SERVICE_DELETE_MEDICATION = "delete_medication"
SERVICE_TOGGLE_DOSE = "toggle_dose"
SERVICE_RESET_DOSES = "reset_doses"
SERVICE_REPLACE_PROFILE = "replace_profile"
SERVICE_GET_MEDICATION_INFO = "get_medication_info"

SERVICES = (
    SERVICE_ADD_MEDICATION,
    SERVICE_UPDATE_MEDICATION,
    SERVICE_DELETE_MEDICATION,
    SERVICE_TOGGLE_DOSE,
    SERVICE_RESET_DOSES,
    SERVICE_REPLACE_PROFILE,
    SERVICE_GET_MEDICATION_INFO,
)

# Dispatcher signals
SIGNAL_MEDICATIONS_UPDATED = f"{DOMAIN}_medications_updated"
SIGNAL_CLOCK_TICK = f"{DOMAIN}_clock_tick"

# Informational lookup
GEMINI_MODEL = "gemini-2.5-flash"
GEMINI_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"
INFO_TIMEOUT_SECONDS = 30
