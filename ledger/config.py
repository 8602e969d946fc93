import logging
import os
from pathlib import Path

from dotenv import load_dotenv

ROOT = Path(__file__).resolve().parents[1]
load_dotenv(ROOT / ".env")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw.strip())
    except ValueError:
        return default


DATA_PATH = os.getenv("HL_DATA_PATH", str(ROOT / "data" / "seed.json"))
CURRENCY = os.getenv("HL_CURRENCY", "BRL")
LOG_LEVEL = os.getenv("HL_LOG_LEVEL", "WARNING").strip().upper()
# bills due within this many days show up as reminders
REMINDER_DAYS = max(0, _env_int("HL_REMINDER_DAYS", 3))
HISTORY_MONTHS = max(1, _env_int("HL_HISTORY_MONTHS", 3))


def configure_logging(level: str | None = None) -> None:
    logging.basicConfig(
        level=getattr(logging, (level or LOG_LEVEL), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
