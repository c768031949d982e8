"""Configuration management for the analytics chat client."""
import os
import logging
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Analytics Service
ANALYTICS_API_URL = os.getenv("ANALYTICS_API_URL", "http://localhost:8001").rstrip("/")
REQUEST_TIMEOUT = float(os.getenv("ANALYTICS_REQUEST_TIMEOUT", "120"))  # seconds
HEALTH_POLL_INTERVAL = float(os.getenv("HEALTH_POLL_INTERVAL", "10"))  # seconds

# Endpoints
CHAT_PATH = "/api/analytics/chat"
DRILL_OPTIONS_PATH = "/api/analytics/drill-options"
DRILL_DOWN_PATH = "/api/analytics/drill-down"
HEALTH_PATH = "/health"

# Bookmarks
BOOKMARKS_PATH = os.path.expanduser(
    os.getenv("BOOKMARKS_PATH", "~/.analytics-client/bookmarks.json")
)

# Pinned View Configuration
PINNED_PREVIEW_ROWS = 100
PINNED_DEDUP_WINDOW_SECONDS = 2.0
DEFAULT_CHART_TITLE = "Chart"

# Logging Configuration
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

logging.basicConfig(
    level=getattr(logging, LOG_LEVEL),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
