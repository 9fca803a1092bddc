"""
launcher/services/gate.py

Unlock date evaluation at day granularity.
"""

import re
from datetime import date, datetime
from typing import Optional

import structlog

from launcher.constants import UNLOCK_DATE_FORMAT

logger = structlog.get_logger(__name__)

_UNLOCK_DATE_PATTERN = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")


def parse_unlock_date(value: str) -> Optional[date]:
    """Parse a YYYY-MM-DD string, returning None when it is not one."""
    if not _UNLOCK_DATE_PATTERN.fullmatch(value):
        return None
    try:
        return datetime.strptime(value, UNLOCK_DATE_FORMAT).date()
    except ValueError:
        return None


def is_gate_open(unlock_date: str, today: Optional[date] = None) -> bool:
    """
    Return True when today is on or after the unlock date.

    An unparseable unlock date keeps the gate closed forever.
    """
    gate_date = parse_unlock_date(unlock_date)
    if gate_date is None:
        logger.warning("unlock_date_unparseable", unlock_date=unlock_date)
        return False

    current = today or date.today()
    return current >= gate_date
