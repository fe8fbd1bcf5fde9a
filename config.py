"""
Central configuration — reads from .env file.

Every value is a plain module attribute, so code reading config.X picks up
whatever a test has monkeypatched in its place.
"""
import os
from dotenv import load_dotenv

load_dotenv()

# ── Gemini ────────────────────────────────────────────────────────────────────
# GOOGLE_API_KEY is accepted as a fallback because the google-genai SDK
# documents that name.
GEMINI_API_KEY: str | None = os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY")
GEMINI_MODEL: str          = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")

# ── HTTP server ───────────────────────────────────────────────────────────────
SERVER_HOST: str = os.getenv("SERVER_HOST", "0.0.0.0")
SERVER_PORT: int = int(os.getenv("SERVER_PORT", "3001"))

# Upper bound for a whole request body (two photos + form fields)
MAX_UPLOAD_MB: int = int(os.getenv("MAX_UPLOAD_MB", "20"))

# ── Storage ───────────────────────────────────────────────────────────────────
# Uploaded photos live here only for the duration of one request.
UPLOAD_DIR: str = os.getenv("UPLOAD_DIR", "uploads")

# Log file location
DATA_DIR: str = os.getenv("DATA_DIR", "data")

# ── Analysis ──────────────────────────────────────────────────────────────────
# Used when the client sends no goals / allergy text
DEFAULT_USER_GOALS: str = os.getenv("DEFAULT_USER_GOALS", "General healthy eating")
