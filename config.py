import os

# Server configuration
SERVER_PORT = 5001
DEBUG_MODE = False
# "eventlet" in production; tests switch to "threading".
ASYNC_MODE = "eventlet"

# Data files
DATA_DIR = os.environ.get("MICROWAVE_DATA_DIR", os.path.join(os.path.dirname(__file__), ".data"))
CUSTOM_PROGRAMS_FILE = os.path.join(DATA_DIR, "custom_programs.json")
AUTH_SETTINGS_FILE = os.path.join(DATA_DIR, "auth_settings.json")
AUDIT_LOG_FILE = os.path.join(DATA_DIR, "audit_trail.csv")

# Authentication
SECRET_KEY = os.environ.get("MICROWAVE_SECRET_KEY", "microwave-dev-secret")
TOKEN_TTL_SECONDS = 8 * 60 * 60
AUTH_REQUIRED = True

# Quick heat preset
QUICK_HEAT_SECONDS = 30
QUICK_HEAT_POWER = 10
