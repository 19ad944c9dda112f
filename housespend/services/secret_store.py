"""Encrypted key/value secrets kept in the app_config table."""

import logging

from sqlalchemy.orm import Session

from housespend.models.app_config import AppConfig
from housespend.services.encryption import EncryptionService

logger = logging.getLogger(__name__)

ANTHROPIC_API_KEY = "anthropic_api_key"  # noqa: S105


class SecretStore:
    """Read and write secrets, encrypting them at rest."""

    def __init__(self, db: Session, encryption: EncryptionService):
        self.db = db
        self.encryption = encryption

    def get(self, key: str) -> str | None:
        """Return the decrypted secret, or None when it is not configured."""
        config = self.db.query(AppConfig).filter(AppConfig.key == key).first()
        if config is None or not config.value:
            return None
        return self.encryption.decrypt(config.value) or None

    def has(self, key: str) -> bool:
        """Check if a secret is stored, without decrypting it."""
        return (
            self.db.query(AppConfig.id)
            .filter(AppConfig.key == key, AppConfig.value != "")
            .first()
            is not None
        )

    def set(self, key: str, value: str) -> None:
        """Encrypt and store a secret, replacing any previous value."""
        encrypted = self.encryption.encrypt(value)
        config = self.db.query(AppConfig).filter(AppConfig.key == key).first()
        if config:
            config.value = encrypted
        else:
            self.db.add(AppConfig(key=key, value=encrypted))
        self.db.commit()
        logger.info(f"Stored secret '{key}'")
