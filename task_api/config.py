from pathlib import Path
import os

from dotenv import load_dotenv

# Load environment variables from the project root and the working directory (if present).
PROJECT_ROOT = Path(__file__).resolve().parents[1]
load_dotenv(PROJECT_ROOT / ".env")
load_dotenv()


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


APP_NAME = "Task Service API"
APP_VERSION = "1.0.0"

ENVIRONMENT = os.getenv("ENVIRONMENT", "development")
DEBUG = _env_flag("DEBUG")

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./tasks.db")

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "8000"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FILE = os.getenv("LOG_FILE") or None

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100

BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "12"))

_cors_origins = os.getenv("CORS_ORIGINS", "http://localhost:3000")
CORS_ORIGINS = [origin.strip() for origin in _cors_origins.split(",") if origin.strip()]
