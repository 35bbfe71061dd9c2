"""Application configuration for the DISG Kurzanalyse."""
import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent

SECRET_KEY = os.environ.get("SECRET_KEY", "replace-this-with-a-random-value")
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

# Storage
DATABASE_PATH = os.environ.get("DISG_DATABASE_PATH", str(BASE_DIR / ".data" / "disg.db"))

# Admin access
ADMIN_PASSWORD = os.environ.get("ADMIN_PASSWORD", "")
ALLOWED_EMAILS = [
    email.strip().lower()
    for email in os.environ.get("ALLOWED_EMAILS", "").split(",")
    if email.strip()
]
ADMIN_SESSION_HOURS = 2
ADMIN_LOGIN_DELAY = float(os.environ.get("ADMIN_LOGIN_DELAY", "1.0"))  # seconds
ADMIN_COOKIE_NAME = "admin_token"
ADMIN_COOKIE_SECURE = os.environ.get("FLASK_ENV") == "production"

# Email (SendGrid)
SENDGRID_API_KEY = os.environ.get("SENDGRID_API_KEY", "")
EMAIL_ADMIN_RECIPIENT = os.environ.get("EMAIL_ADMIN_RECIPIENT", "admin@yourdomain.com")
EMAIL_FROM_NOREPLY = os.environ.get("EMAIL_FROM_NOREPLY", "noreply@yourdomain.com")
EMAIL_FROM_SUPPORT = os.environ.get("EMAIL_FROM_SUPPORT", "support@yourdomain.com")
CONTACT_ADDRESS = "kurzanalyse@power4-people.de"

# Verification
VERIFICATION_CODE_MINUTES = 5
TEST_CHEATCODE = os.environ.get("TEST_CHEATCODE", "")

# Admin dashboard
RESULTS_PER_PAGE = 20
MAX_RESULTS_PER_PAGE = 100
