"""
Abstract base class for the key-value configuration store.

Holds the OCR credentials and the cached access token. Implementations must
raise PersistenceError when a write cannot be completed.
"""

from abc import ABC, abstractmethod
from typing import Optional


class ConfigKeys:
    """Well-known configuration keys"""
    BAIDU_OCR_API_KEY = "baidu_ocr_api_key"
    BAIDU_OCR_SECRET_KEY = "baidu_ocr_secret_key"
    BAIDU_OCR_ACCESS_TOKEN = "baidu_ocr_access_token"
    BAIDU_OCR_TOKEN_EXPIRES = "baidu_ocr_token_expires"  # epoch seconds, as text


class ConfigStoreBase(ABC):
    """
    Abstract base class for configuration storage.

    Implementations can use:
    - In-memory storage (for testing)
    - SQLite (the desktop/single-instance deployment)
    """

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """
        Get a configuration value.

        Args:
            key: Configuration key

        Returns:
            The stored value, or None if the key is absent
        """
        pass

    @abstractmethod
    def set(self, key: str, value: str, description: Optional[str] = None) -> None:
        """
        Insert or update a configuration value.

        Args:
            key: Configuration key
            value: Value to store
            description: Human-readable description; when None the
                previous description (if any) is kept
        """
        pass

    @abstractmethod
    def delete(self, key: str) -> bool:
        """
        Delete a configuration entry.

        Returns:
            True if the key existed, False otherwise
        """
        pass

    @abstractmethod
    def list_all(self) -> list:
        """
        List all configuration entries.

        Returns:
            List of dicts with keys: key, value, description, updated_at
        """
        pass
