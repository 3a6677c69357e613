from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from schemas import DEFAULT_SUBSCRIPTION, SubscriptionTier


@dataclass(slots=True)
class Account:
    """Aggregate root for a user account and its single active session."""

    account_id: str
    email: str
    password_hash: str
    avatar_url: str
    created_at: datetime
    subscription: SubscriptionTier = DEFAULT_SUBSCRIPTION
    token: str | None = None

    @property
    def has_session(self) -> bool:
        return bool(self.token)
