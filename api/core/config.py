# core/config.py
import os

from dotenv import load_dotenv

# Load .env
load_dotenv()

# api/ directory
BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

# ---- ENV VALUES ----
BIBLE_DB_PATH = os.getenv("BIBLE_DB_PATH", os.path.join(BASE_DIR, "bible.db"))

# Empty means the catalog shipped with services/references/data
BIBLE_CATALOG_PATH = os.getenv("BIBLE_CATALOG_PATH") or None

# Directory holding the TSV source corpora for scripts/create_db.py
BIBLE_DATA_DIR = os.getenv("BIBLE_DATA_DIR", os.path.join(os.path.dirname(BASE_DIR), "data"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# ---- SERVER ----
API_HOST = os.getenv("API_HOST", "127.0.0.1")
API_PORT = int(os.getenv("API_PORT", "5055"))
