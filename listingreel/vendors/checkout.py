"""
Stripe subscription checkout.
"""

import logging
from typing import Mapping, Optional

from listingreel import config
from listingreel.core.errors import ValidationError
from listingreel.vendors.base import VendorClient
from listingreel.vendors.models import CheckoutSession

logger = logging.getLogger(__name__)


def default_price_ids() -> Mapping[str, str]:
    return {
        "starter": config.STRIPE_PRICE_STARTER,
        "growth": config.STRIPE_PRICE_GROWTH,
    }


class StripeCheckout(VendorClient):
    name = "Stripe"
    base_url = "https://api.stripe.com/v1"

    def __init__(self, api_key=config.STRIPE_SECRET_KEY,
                 price_ids: Optional[Mapping[str, str]] = None,
                 app_url: str = config.APP_URL, **kwargs):
        super().__init__(api_key, **kwargs)
        self.price_ids = price_ids if price_ids is not None else default_price_ids()
        self.app_url = app_url.rstrip("/")

    def price_for(self, plan: str) -> str:
        if plan == "enterprise":
            raise ValidationError("Enterprise plan requires contacting sales")
        price_id = self.price_ids.get(plan)
        if not price_id:
            raise ValidationError(f"Invalid plan: {plan}")
        return price_id

    async def create_session(self, user_id: str, plan: str,
                             email: Optional[str] = None) -> CheckoutSession:
        price_id = self.price_for(plan)
        form = {
            "mode": "subscription",
            "line_items[0][price]": price_id,
            "line_items[0][quantity]": "1",
            "success_url": f"{self.app_url}/dashboard?session_id={{CHECKOUT_SESSION_ID}}",
            "cancel_url": f"{self.app_url}/#pricing",
            "metadata[user_id]": user_id,
            "metadata[plan]": plan,
            "subscription_data[metadata][user_id]": user_id,
            "subscription_data[metadata][plan]": plan,
        }
        if email:
            form["customer_email"] = email

        response = await self._request("POST", "/checkout/sessions", data=form)
        session = CheckoutSession.model_validate(self._json(response))
        logger.info(f"Checkout session {session.id} created for user {user_id} ({plan})")
        return session
