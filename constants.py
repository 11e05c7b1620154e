# ===================================================================
# CORE CONFIGURATION
# This file contains all shared settings for the intersection controller.
# Deployment settings and secrets can be overridden from the environment.
# ===================================================================
import os

# --- Road Layout Configuration ---
# Opposite approaches move together as one axis.
AXES = {
    'NS': ('North', 'South'),
    'EW': ('East', 'West'),
}

# --- Signal Timings (in seconds, one tick == one second) ---
TICK_INTERVAL_SECONDS = 1.0
YELLOW_DURATION = 3
STARTUP_GREEN_DURATION = 15    # First North/South green after an all-red start
EMERGENCY_GREEN_DURATION = 60  # Green held for an emergency vehicle
MIN_GREEN_DURATION = 10
MAX_GREEN_DURATION = 60

# --- Adaptive Green Time ---
# Seconds of green added per vehicle of each class.
VEHICLE_WEIGHTS = {
    'trucks': 5,
    'cars': 2,
    'bikes': 1,
}

# --- Event Log ---
EVENT_LOG_SIZE = 50  # Only the most recent entries are kept for the UI

# --- Vision Analysis Service (Gemini) ---
GEMINI_API_KEY = os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY", "")
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-3-flash-preview")
GEMINI_ENDPOINT = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"
GEMINI_TIMEOUT = float(os.getenv("GEMINI_TIMEOUT", "30"))

ANALYSIS_PROMPT = (
    "Analyze this traffic feed. Detect vehicles, calculate counts to determine signal timing, "
    "and identify any critical events like ambulances, accidents, or fights. Be precise."
)
ANALYSIS_SYSTEM_INSTRUCTION = (
    "You are an AI Traffic Controller. Your job is to analyze road feeds accurately "
    "to optimize traffic flow and ensure safety."
)

# --- Uploads ---
ALLOWED_UPLOAD_TYPES = (
    'image/jpeg', 'image/png', 'image/webp', 'image/bmp',
    'video/mp4', 'video/quicktime', 'video/x-msvideo', 'video/x-matroska', 'video/webm',
)
RESIZE_WIDTH = 480  # Width of the preview frames kept for the UI
JPEG_QUALITY = 85

# --- Telegram Alerts ---
TELEGRAM_BOT_TOKEN = os.getenv("TELEGRAM_BOT_TOKEN", "")
TELEGRAM_CHAT_ID = os.getenv("TELEGRAM_CHAT_ID", "")
TELEGRAM_TIMEOUT = 5

# --- Web Server ---
WEB_HOST = os.getenv("WEB_HOST", "0.0.0.0")
WEB_PORT = int(os.getenv("WEB_PORT", "5000"))
SSE_POLL_INTERVAL = 0.5
