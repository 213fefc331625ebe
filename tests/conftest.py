import os
import tempfile

# Point the module-level engine at a throwaway SQLite file before salonbook is imported
os.environ.setdefault(
    "DATABASE_URL",
    "sqlite:///" + os.path.join(tempfile.gettempdir(), "salonbook-tests.db")
)
os.environ.setdefault("TWILIO_ACCOUNT_SID", "")
