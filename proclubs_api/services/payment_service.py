"""
Payment service for Stripe integration.

Creates subscription checkout sessions for paid tiers and applies the
outcome of Stripe webhooks to the API key store:

- checkout.session.completed: upgrade the key that started the checkout, or
  issue a new key for the user
- customer.subscription.deleted: downgrade the subscription's key to free
- customer.subscription.updated: acknowledged and logged

Raw API keys never leave this process. A checkout started with a key is
remembered server-side by Stripe session id; Stripe only sees the key's
display prefix.

Webhook deliveries are not deduplicated by event id; a redelivered
checkout.session.completed without an upgrade key issues another key.
"""
import logging
import threading
from typing import Any, Dict, Optional

import stripe

from ..core.config import Settings
from ..core.exceptions import PaymentError
from ..core.tier_limits import SubscriptionTier, TierCatalog
from .api_key_service import APIKeyStore, mask_key

logger = logging.getLogger(__name__)


class PaymentService:
    """Stripe checkout and webhook handling."""

    def __init__(self, settings: Settings, key_store: APIKeyStore, tier_catalog: TierCatalog):
        self.settings = settings
        self.key_store = key_store
        self.tier_catalog = tier_catalog

        # checkout session id -> key to upgrade, subscription id -> key
        self._pending_upgrades: Dict[str, str] = {}
        self._subscription_keys: Dict[str, str] = {}
        self._lock = threading.Lock()

        # Initialize Stripe
        stripe.api_key = settings.stripe_secret_key

    # ============================================================================
    # CHECKOUT
    # ============================================================================

    async def create_checkout_session(
        self,
        user_id: str,
        tier: SubscriptionTier,
        success_url: str,
        cancel_url: str,
        api_key: Optional[str] = None,
    ) -> str:
        """
        Create a Stripe Checkout session for a monthly subscription.

        Args:
            user_id: Subscriber id, echoed back in the webhook
            tier: Paid tier being purchased
            success_url: Redirect after payment
            cancel_url: Redirect when the user backs out
            api_key: Authenticated key to upgrade once payment completes

        Returns:
            The hosted checkout URL

        Raises:
            PaymentError: Free tier requested (400) or Stripe failed (500)
        """
        tier = SubscriptionTier(tier)
        if tier == SubscriptionTier.FREE:
            raise PaymentError("Free tier does not require payment", status_code=400, error="Bad Request")

        plan = self.tier_catalog.get(tier)

        metadata = {
            "tier": tier.value,
            "userId": user_id,
        }
        if api_key:
            metadata["keyPrefix"] = mask_key(api_key)

        try:
            session = stripe.checkout.Session.create(
                mode="subscription",
                payment_method_types=["card"],
                line_items=[
                    {
                        "price_data": {
                            "currency": plan.currency.lower(),
                            "product_data": {
                                "name": f"EA FC API - {tier.value.upper()} Plan",
                                "description": ", ".join(plan.features),
                            },
                            "unit_amount": round(plan.price * 100),
                            "recurring": {"interval": "month"},
                        },
                        "quantity": 1,
                    }
                ],
                success_url=success_url,
                cancel_url=cancel_url,
                client_reference_id=user_id,
                metadata=metadata,
            )
        except stripe.StripeError as e:
            logger.error(f"Stripe checkout failed for user {user_id}: {e}")
            raise PaymentError(
                f"Stripe error: {str(e)}",
                status_code=500,
                error="Internal Server Error",
            )

        if api_key:
            with self._lock:
                self._pending_upgrades[session.id] = api_key

        return session.url or ""

    # ============================================================================
    # SUBSCRIPTIONS
    # ============================================================================

    def subscription_for_key(self, api_key: str) -> Optional[str]:
        """Stripe subscription id paying for a key, or None."""
        with self._lock:
            for subscription_id, key in self._subscription_keys.items():
                if key == api_key:
                    return subscription_id
        return None

    async def cancel_subscription(self, subscription_id: str) -> None:
        """
        Cancel a Stripe subscription immediately.

        The key is downgraded when Stripe sends customer.subscription.deleted.

        Raises:
            PaymentError: Stripe failed (500)
        """
        try:
            stripe.Subscription.cancel(subscription_id)
        except stripe.StripeError as e:
            logger.error(f"Stripe cancel failed for subscription {subscription_id}: {e}")
            raise PaymentError(
                f"Stripe error: {str(e)}",
                status_code=500,
                error="Internal Server Error",
            )

        logger.info(f"Requested cancellation of subscription {subscription_id}")

    # ============================================================================
    # WEBHOOK
    # ============================================================================

    def construct_event(self, payload: bytes, signature: Optional[str]) -> Dict[str, Any]:
        """
        Verify a webhook payload against its Stripe-Signature header.

        Raises:
            PaymentError: Missing or invalid signature, or malformed payload
        """
        if not signature:
            raise PaymentError("Missing Stripe signature")

        try:
            return stripe.Webhook.construct_event(
                payload,
                signature,
                self.settings.stripe_webhook_secret,
            )
        except ValueError:
            raise PaymentError("Invalid payload")
        except stripe.SignatureVerificationError:
            raise PaymentError("Invalid signature")

    async def handle_webhook(self, payload: bytes, signature: Optional[str]) -> Dict[str, str]:
        """
        Verify and apply a Stripe webhook.

        Returns:
            {"status": ..., "message": ...} for the webhook response
        """
        event = self.construct_event(payload, signature)
        event_type = event["type"]
        obj = event["data"]["object"]

        logger.info(f"Stripe webhook {event.get('id', '<no id>')} ({event_type})")

        if event_type == "checkout.session.completed":
            return self._handle_checkout_completed(obj)

        if event_type == "customer.subscription.deleted":
            return self._handle_subscription_deleted(obj)

        if event_type == "customer.subscription.updated":
            logger.info(f"Subscription updated: {obj.get('id')}")
            return {"status": "success", "message": f"Subscription {obj.get('id')} updated"}

        return {"status": "ignored", "message": f"Unhandled event type: {event_type}"}

    def _handle_checkout_completed(self, session: Dict[str, Any]) -> Dict[str, str]:
        """Issue or upgrade a key for a completed checkout."""
        metadata = session.get("metadata") or {}
        user_id = session.get("client_reference_id") or metadata.get("userId")
        raw_tier = metadata.get("tier")

        if not user_id or not raw_tier:
            raise PaymentError("No userId or tier in session metadata")

        try:
            tier = SubscriptionTier(raw_tier)
        except ValueError:
            raise PaymentError(f"Invalid subscription tier: {raw_tier}")

        with self._lock:
            existing_key = self._pending_upgrades.get(session.get("id"))

        existing = self.key_store.lookup(existing_key) if existing_key else None
        if existing is not None and existing.is_active and self.key_store.change_tier(existing_key, tier):
            self._remember_subscription(session, existing_key)
            logger.info(f"Upgraded API key {mask_key(existing_key)} for user {user_id} to {tier.value}")
            return {"status": "success", "message": f"API key upgraded to {tier.value}"}

        if existing_key:
            logger.warning(
                f"Checkout for user {user_id} referenced unusable key {mask_key(existing_key)}, "
                "issuing a new one"
            )

        record = self.key_store.issue(user_id, tier)
        self._remember_subscription(session, record.key)
        logger.info(f"API key generated for user {user_id} with tier {tier.value}")
        return {"status": "success", "message": f"API key {record.display_prefix} issued with tier {tier.value}"}

    def _handle_subscription_deleted(self, subscription: Dict[str, Any]) -> Dict[str, str]:
        """Downgrade the key a canceled subscription paid for."""
        subscription_id = subscription.get("id")
        with self._lock:
            key = self._subscription_keys.pop(subscription_id, None)

        if key and self.key_store.change_tier(key, SubscriptionTier.FREE):
            logger.info(f"Subscription {subscription_id} canceled, API key {mask_key(key)} downgraded to free")
            return {"status": "success", "message": f"Subscription {subscription_id} canceled, API key downgraded to free"}

        logger.info(f"Subscription canceled: {subscription_id}")
        return {"status": "success", "message": f"Subscription {subscription_id} canceled"}

    def _remember_subscription(self, session: Dict[str, Any], api_key: str) -> None:
        subscription_id = session.get("subscription")
        if subscription_id:
            with self._lock:
                self._subscription_keys[subscription_id] = api_key
