import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./clinic.db")

# Clinic day, in whole hours of local wall-clock time. Slots cover [open, close).
CLINIC_OPEN_HOUR = int(os.getenv("CLINIC_OPEN_HOUR", "8"))
CLINIC_CLOSE_HOUR = int(os.getenv("CLINIC_CLOSE_HOUR", "18"))
SLOT_MINUTES = int(os.getenv("SLOT_MINUTES", "30"))

# Marking a pending appointment completed without confirming it first is an
# unresolved product question; keep it off unless a clinic explicitly asks.
ALLOW_DIRECT_COMPLETION = os.getenv("ALLOW_DIRECT_COMPLETION", "false").lower() == "true"

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
