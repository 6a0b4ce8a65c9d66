# src/utils/misc_utils.py
import time
from datetime import date


def now_ms() -> int:
    """Current time as epoch milliseconds, the timestamp format used in the sheet."""
    return int(time.time() * 1000)


def generate_record_id() -> str:
    """Generates a sheet record id from the current epoch milliseconds."""
    return str(now_ms())


def today_iso() -> str:
    return date.today().isoformat()
