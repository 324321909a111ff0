# runtime configuration, read once from the environment (.env supported)
import os

from dotenv import load_dotenv

load_dotenv()

API_BASE_URL = os.getenv("API_BASE_URL", "http://localhost:8000").rstrip("/")
API_PREFIX = "/api/v1"
API_TIMEOUT = float(os.getenv("API_TIMEOUT", "30"))

SESSION_DB_PATH = os.getenv("SESSION_DB_PATH", "data/session.sqlite")
AUTH_TOKEN_KEY = "fh_auth_token"

LOG_FILE = os.getenv("LOG_FILE", "data/console.log")

CURRENCY = os.getenv("CURRENCY", "EGP")
