"""
User Data Importer - Settings
"""

import logging
from typing import Any

from sqlalchemy.orm import Session

from models.orm_user import User

logger = logging.getLogger(__name__)


class SettingsImporter:
    """Shallow-merges an archived settings document into the user's settings."""

    def __init__(self, session: Session, user_id: int):
        self.session = session
        self.user_id = user_id

    def call(self, settings: Any) -> bool:
        """
        Merge archived settings over the current ones.

        Keys present in the archive overwrite, keys it does not mention
        are kept.

        Args:
            settings: Archived settings mapping; anything else is ignored

        Returns:
            True if the user's settings were updated
        """
        if not isinstance(settings, dict) or not settings:
            return False

        user = self.session.get(User, self.user_id)
        if user is None:
            logger.warning(f"Cannot import settings: user {self.user_id} not found")
            return False

        logger.info(f"Importing settings for user {self.user_id}")
        # Assign a new dict so the JSON column is flagged dirty
        user.settings = {**(user.settings or {}), **settings}
        self.session.flush()

        logger.info("Settings import completed", extra={
            "user_id": self.user_id,
            "keys_imported": len(settings)
        })
        return True
