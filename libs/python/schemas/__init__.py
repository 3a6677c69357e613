"""Shared schema exports."""

from .account import DEFAULT_SUBSCRIPTION, AccountProfile, RegisteredAccount, SubscriptionTier

__all__ = [
    "AccountProfile",
    "DEFAULT_SUBSCRIPTION",
    "RegisteredAccount",
    "SubscriptionTier",
]
