"""
launcher/services/persistence.py

Reads and writes the launch completion record.
Uses SQLAlchemy 2.0 async sessions over the launch_state key/value table.
"""

from typing import Optional

import structlog
from sqlalchemy import select

from db.models import AsyncSessionLocal, LaunchStateEntry
from launcher.constants import HAS_LAUNCHED_BEFORE_KEY, STORED_DESTINATION_KEY
from launcher.schemas import LaunchCompletionRecord

logger = structlog.get_logger(__name__)

_TRUE = "1"
_FALSE = "0"


class LaunchStateStore:
    """Durable storage for LaunchCompletionRecord."""

    def __init__(self, session_factory=AsyncSessionLocal) -> None:
        self._session_factory = session_factory

    async def load(self) -> LaunchCompletionRecord:
        """
        Read the completion record.

        A storage failure is logged and reported as a first launch.
        """
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(LaunchStateEntry).where(
                        LaunchStateEntry.key.in_(
                            [HAS_LAUNCHED_BEFORE_KEY, STORED_DESTINATION_KEY]
                        )
                    )
                )
                values: dict[str, Optional[str]] = {
                    entry.key: entry.value for entry in result.scalars()
                }
        except Exception as exc:
            logger.error("launch_state_load_failed", error=str(exc))
            return LaunchCompletionRecord()

        return LaunchCompletionRecord(
            has_launched_before=values.get(HAS_LAUNCHED_BEFORE_KEY) == _TRUE,
            stored_destination=values.get(STORED_DESTINATION_KEY),
        )

    async def save(self, record: LaunchCompletionRecord) -> bool:
        """Upsert the completion record. Returns False if the write failed."""
        try:
            async with self._session_factory() as session:
                await session.merge(
                    LaunchStateEntry(
                        key=STORED_DESTINATION_KEY,
                        value=record.stored_destination,
                    )
                )
                await session.merge(
                    LaunchStateEntry(
                        key=HAS_LAUNCHED_BEFORE_KEY,
                        value=_TRUE if record.has_launched_before else _FALSE,
                    )
                )
                await session.commit()
        except Exception as exc:
            logger.error("launch_state_persist_failed", error=str(exc))
            return False

        logger.info(
            "launch_state_persisted",
            has_launched_before=record.has_launched_before,
            stored_destination=record.stored_destination,
        )
        return True
