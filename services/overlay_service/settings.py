import os
import logging

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").strip().upper()

# Configure logging
logging.basicConfig(level=getattr(logging, LOG_LEVEL, logging.INFO))

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "3000"))
# Stack traces are attached to error payloads only outside production
ENVIRONMENT = os.getenv("ENVIRONMENT", "production").strip().lower()

LOGO_URL = os.getenv(
    "LOGO_URL",
    "https://res.cloudinary.com/dpglmhglb/image/upload/v1752430102/M-Logo512_e4wycy.png",
).strip()
BRAND_LABEL = os.getenv("BRAND_LABEL", "GET MENTORS")

FETCH_TIMEOUT_S = float(os.getenv("FETCH_TIMEOUT_S", "10"))  # per outbound image fetch
MAX_REQUEST_SIZE_MB = int(os.getenv("MAX_REQUEST_SIZE_MB", "50"))  # hard cap on request body
SHUTDOWN_TIMEOUT_S = float(os.getenv("SHUTDOWN_TIMEOUT_S", "1"))  # in-flight requests are not drained

# Optional directory searched for .ttf files before system font names
FONT_DIR = os.getenv("FONT_DIR", "").strip()


def is_production() -> bool:
    return ENVIRONMENT == "production"
