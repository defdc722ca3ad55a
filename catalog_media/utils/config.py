from dotenv import load_dotenv
import os

# --- Environment variables ---
load_dotenv()


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default) in ("1", "true", "True")


# --- Default paths ---
OUTPUT_DIR = os.getenv("OUTPUT_DIR") or "downloaded_images"
LINKS_FILE = os.getenv("LINKS_FILE") or "image_links.txt"

# --- HTTP ---
REQUEST_TIMEOUT = float(os.getenv("REQUEST_TIMEOUT") or 30)  # seconds
REQUEST_DELAY = float(os.getenv("REQUEST_DELAY") or 0.1)  # seconds between items
MAX_RETRIES = int(os.getenv("MAX_RETRIES") or 0)
RETRY_BACKOFF = float(os.getenv("RETRY_BACKOFF") or 1.0)  # seconds, multiplied by attempt
CONCURRENT = int(os.getenv("CONCURRENT") or 1)
CHUNK_SIZE = int(os.getenv("CHUNK_SIZE") or 8192 * 4)
VERIFY_SSL = _env_bool("VERIFY_SSL", "1")
USER_AGENT = os.getenv("USER_AGENT") or "catalog-media/0.1"

HEADERS = {
    'Accept': 'image/*,*/*;q=0.8',
    'User-Agent': USER_AGENT,
}

# --- Destination paths ---
DEFAULT_FILENAME = "image.jpg"
UNKNOWN_PATH = "/unknown/"

# --- Product JSON fields ---
IMAGE_LINKS_FIELD = "imageLinks"
IMAGE_LINK_KEYS = ("big", "thumb", "basic", "small")
COLORS_FIELD = "colorsProduct"
COLOR_IMAGE_KEY = "pathImgBig"

# --- Logging ---
LOG_LEVEL = (os.getenv("LOG_LEVEL") or "INFO").upper()
LOG_FORMAT = '%(asctime)s [%(levelname)s] %(message)s'
