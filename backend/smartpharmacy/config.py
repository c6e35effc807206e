# backend/smartpharmacy/config.py
import os

HERE = os.path.dirname(__file__)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./smartpharmacy.db")

# Drug catalog (trade_name, active_ingredient, therapeutic_group, avg_price, form)
CATALOG_PATH = os.getenv("CATALOG_PATH", os.path.join(HERE, "data", "drugs.csv"))
CATALOG_MAX_ROWS = int(os.getenv("CATALOG_MAX_ROWS", "15000"))

# "sql" keeps reservations in DATABASE_URL, "memory" keeps them in-process
RESERVATION_BACKEND = os.getenv("RESERVATION_BACKEND", "sql").lower()

# AI provider (chat + OCR)
GEMINI_API_KEY = (os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY") or "").strip()
GEMINI_BASE = os.getenv("GEMINI_BASE", "https://generativelanguage.googleapis.com/v1beta")
GEMINI_MODELS = [
    m.strip()
    for m in os.getenv("GEMINI_MODELS", "gemini-2.5-flash,gemini-2.0-flash,gemini-1.5-flash").split(",")
    if m.strip()
]
AI_TIMEOUT_SECS = float(os.getenv("AI_TIMEOUT_SECS", "10"))
CHAT_FALLBACK = os.getenv("CHAT_FALLBACK", "on").lower() != "off"

MAX_UPLOAD_BYTES = int(os.getenv("MAX_UPLOAD_BYTES", str(10 * 1024 * 1024)))

CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
