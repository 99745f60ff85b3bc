"""
API Key Service for managing subscriber API keys.

This service handles:
- Generating unique API keys bound to a subscription tier
- Looking up keys during API requests
- Usage accounting (request count, last use)
- Managing key lifecycle (deactivate, change tier)

Keys are held in memory for the lifetime of the process. All mutations go
through a single lock so concurrent requests never lose an update.
"""
import logging
import threading
import uuid
from typing import Callable, Dict, List, Optional
from datetime import datetime, timezone
from pydantic import BaseModel, Field

from ..core.tier_limits import SubscriptionTier

logger = logging.getLogger(__name__)


# ============================================================================
# SCHEMAS
# ============================================================================

class APIKeyRecord(BaseModel):
    """A subscriber's API key and its usage counters."""
    key: str
    tier: SubscriptionTier
    owner_id: str
    created_at: datetime
    is_active: bool = True
    request_count: int = Field(default=0, ge=0)
    last_used_at: Optional[datetime] = None

    @property
    def display_prefix(self) -> str:
        """Key prefix that is safe to log or show in a UI."""
        return mask_key(self.key)


def mask_key(key: str) -> str:
    """Get the display prefix for a key (first 16 chars)."""
    return key[:16] + "..." if len(key) > 16 else key


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ============================================================================
# SERVICE
# ============================================================================

class APIKeyStore:
    """In-memory store of API keys, keyed by the exact key string."""

    # Key format: eafc_<tier>_<32 hex chars from a UUID4>
    KEY_PREFIX = "eafc_"

    def __init__(self, clock: Callable[[], datetime] = _utcnow):
        self._keys: Dict[str, APIKeyRecord] = {}
        self._lock = threading.Lock()
        self._clock = clock

    def _generate_key(self, tier: SubscriptionTier) -> str:
        """Generate a new API key. The tier segment is a convenience, not a secret."""
        return f"{self.KEY_PREFIX}{SubscriptionTier(tier).value}_{uuid.uuid4().hex}"

    def issue(self, owner_id: str, tier: SubscriptionTier) -> APIKeyRecord:
        """
        Issue a new API key.

        Args:
            owner_id: Opaque identifier of the subscriber
            tier: Subscription tier the key grants

        Returns:
            The stored record (a copy)
        """
        tier = SubscriptionTier(tier)

        with self._lock:
            key = self._generate_key(tier)
            while key in self._keys:
                key = self._generate_key(tier)

            record = APIKeyRecord(
                key=key,
                tier=tier,
                owner_id=owner_id,
                created_at=self._clock(),
            )
            self._keys[key] = record
            snapshot = record.model_copy()

        logger.info(f"Issued {tier.value} API key {snapshot.display_prefix} for owner {owner_id}")
        return snapshot

    def lookup(self, key: str) -> Optional[APIKeyRecord]:
        """Get a key record by exact key, or None if it was never issued."""
        with self._lock:
            record = self._keys.get(key)
            return record.model_copy() if record is not None else None

    def record_use(self, key: str, require_active: bool = False) -> Optional[APIKeyRecord]:
        """
        Count one authenticated request against a key.

        Args:
            key: Exact key string
            require_active: Refuse a deactivated key in the same critical section

        Returns:
            The updated record, or None if the key is unknown (or inactive when
            require_active is set); nothing changes in that case
        """
        with self._lock:
            record = self._keys.get(key)
            if record is None or (require_active and not record.is_active):
                return None
            record.request_count += 1
            record.last_used_at = self._clock()
            return record.model_copy()

    def deactivate(self, key: str) -> bool:
        """
        Deactivate a key permanently.

        Returns:
            True if the key exists, False if not found
        """
        with self._lock:
            record = self._keys.get(key)
            if record is None:
                return False
            record.is_active = False

        logger.info(f"Deactivated API key {mask_key(key)}")
        return True

    def change_tier(self, key: str, new_tier: SubscriptionTier) -> bool:
        """
        Move a key to another tier in place.

        Returns:
            True if the key exists, False if not found
        """
        new_tier = SubscriptionTier(new_tier)

        with self._lock:
            record = self._keys.get(key)
            if record is None:
                return False
            old_tier = record.tier
            record.tier = new_tier

        logger.info(f"API key {mask_key(key)} moved from {old_tier.value} to {new_tier.value}")
        return True

    def list_keys(self, owner_id: Optional[str] = None) -> List[APIKeyRecord]:
        """
        List issued keys, optionally only those of one owner.

        Returns:
            Copies of the records, oldest first
        """
        with self._lock:
            records = [
                record.model_copy()
                for record in self._keys.values()
                if owner_id is None or record.owner_id == owner_id
            ]
        return sorted(records, key=lambda record: record.created_at)

    def __len__(self) -> int:
        with self._lock:
            return len(self._keys)
