"""
API key authentication.

Flow:
  1. Read the raw X-API-Key value
  2. Look the key up, verify is_active and count the request (one step)
  3. Return the updated record

Security:
  - Unknown and deactivated keys get the same 401 message
  - Raw keys are never logged, only their display prefix
"""
import logging
from typing import Optional

from ..core.exceptions import InvalidCredentialError, MissingCredentialError
from .api_key_service import APIKeyRecord, APIKeyStore, mask_key

logger = logging.getLogger(__name__)


class APIKeyAuthenticator:
    """Resolves an inbound credential to an active API key record."""

    def __init__(self, key_store: APIKeyStore):
        self.key_store = key_store

    def authenticate(self, raw_key: Optional[str]) -> APIKeyRecord:
        """
        Authenticate a request by its API key.

        Usage is recorded before any rate limit check runs, so a request that
        is later throttled still counts toward request_count.

        Args:
            raw_key: Value of the X-API-Key header, None if absent

        Returns:
            APIKeyRecord with request_count already incremented

        Raises:
            MissingCredentialError: No key supplied
            InvalidCredentialError: Key unknown or inactive
        """
        if not raw_key:
            raise MissingCredentialError()

        # Active check and usage update happen under one lock
        record = self.key_store.record_use(raw_key, require_active=True)
        if record is None:
            logger.debug(f"Rejected API key {mask_key(raw_key)}")
            raise InvalidCredentialError()

        return record
