import json
import os

from stat_paths import data_path

FORT_AUTH = os.getenv("FORT_AUTH")
FORT_API_URL = os.getenv("FORT_API_URL", "https://fortniteapi.io/v1/stats")
FORT_API_TIMEOUT = float(os.getenv("FORT_API_TIMEOUT", "30"))

DB_URL = os.getenv("FORT_DB_URL")
DB_NAME = os.getenv("FORT_DB_NAME", "fortstats")
DB_USER = os.getenv("FORT_DB_USER", "postgres")
DB_PASSWORD = os.getenv("FORT_DB_PASSWORD")
DB_HOST = os.getenv("FORT_DB_HOST", "localhost")
DB_PORT = os.getenv("FORT_DB_PORT", "5432")

TWILIO_SID = os.getenv("TWILIO_SID", "None")
TWILIO_TKN = os.getenv("TWILIO_TKN", "None")
TWILIO_PHONE = os.getenv("TWILIO_PHONE", "None")
MESSAGE_BANNER = os.getenv("FORT_MESSAGE_BANNER", "[Beta Testing]")

REPORT_TIMEZONE = os.getenv("FORT_TZ", "UTC")

FETCH_FAILURE_POLICIES = ("isolate", "abort")

SETTINGS_PATH = data_path("settings.json")

_RUNTIME_SETTINGS_CACHE: dict = {"mtime": None, "settings": {}}


def load_runtime_settings() -> dict:
    """Load settings.json with a lightweight mtime cache.

    Lets the interval, look-back and failure policy change between cycles
    without restarting the process.
    """

    if not SETTINGS_PATH.exists():
        _RUNTIME_SETTINGS_CACHE["mtime"] = None
        _RUNTIME_SETTINGS_CACHE["settings"] = {}
        return {}

    try:
        mtime = SETTINGS_PATH.stat().st_mtime
    except OSError:
        mtime = None

    if _RUNTIME_SETTINGS_CACHE.get("mtime") == mtime and isinstance(
        _RUNTIME_SETTINGS_CACHE.get("settings"), dict
    ):
        return _RUNTIME_SETTINGS_CACHE["settings"]

    try:
        with open(SETTINGS_PATH, "r") as f:
            settings = json.load(f)
        if not isinstance(settings, dict):
            settings = {}
    except (OSError, json.JSONDecodeError) as e:
        print(f"Warning: Could not load settings file: {e}")
        settings = {}

    _RUNTIME_SETTINGS_CACHE["mtime"] = mtime
    _RUNTIME_SETTINGS_CACHE["settings"] = settings
    return settings


def _setting_int(key: str, env_name: str, default: str) -> int:
    fallback = int(os.getenv(env_name, default))
    chosen = load_runtime_settings().get(key, fallback)
    try:
        return int(chosen)
    except (TypeError, ValueError):
        return fallback


def get_update_interval() -> int:
    """Seconds between report cycles, from settings or env."""
    return _setting_int("update_interval", "FORT_UPDATE_INTERVAL", "86400")


def get_lookback_days() -> int:
    days = _setting_int("lookback_days", "FORT_LOOKBACK_DAYS", "2")
    return days if days > 0 else 1


def get_fetch_failure_policy() -> str:
    default_policy = os.getenv("FORT_FETCH_FAILURE_POLICY", "isolate").strip().lower()
    chosen = str(load_runtime_settings().get("fetch_failure_policy", default_policy)).strip().lower()
    if chosen not in FETCH_FAILURE_POLICIES:
        print(f"⚠️ Unknown fetch_failure_policy '{chosen}', using 'isolate'")
        return "isolate"
    return chosen


def get_db_url() -> str:
    if DB_URL:
        return DB_URL
    return f"postgresql://{DB_USER}:{DB_PASSWORD}@{DB_HOST}:{DB_PORT}/{DB_NAME}"
