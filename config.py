import os

# Base directory
BASE_DIR = os.path.dirname(os.path.abspath(__file__))

# Paths
LOG_FILE = os.getenv("LOG_FILE", os.path.join(BASE_DIR, "launch.log"))

# Server
DEFAULT_HOST = os.getenv("HOST", "127.0.0.1")
DEFAULT_PORT = int(os.getenv("PORT", "8000"))

# Sessions
SESSION_TTL = int(os.getenv("SESSION_TTL", "3600"))          # seconds since last access
SESSION_CLEANUP_INTERVAL = 300                               # expired-session sweep (seconds)

# Mock test
TICK_INTERVAL_SECONDS = float(os.getenv("TICK_INTERVAL_SECONDS", "1.0"))
PASS_PERCENTAGE = int(os.getenv("PASS_PERCENTAGE", "40"))

# Bulk import
MAX_IMPORT_SIZE = 2 * 1024 * 1024   # 2 MB
