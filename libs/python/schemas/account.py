"""Account-related DTOs shared across services."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class SubscriptionTier(str, Enum):
    starter = "starter"
    pro = "pro"
    business = "business"


DEFAULT_SUBSCRIPTION = SubscriptionTier.starter


class AccountProfile(BaseModel):
    """Public projection of an account; never carries credentials."""

    model_config = ConfigDict(populate_by_name=True, use_enum_values=True)

    email: EmailStr
    subscription_tier: SubscriptionTier = Field(..., alias="subscriptionTier")


class RegisteredAccount(AccountProfile):
    avatar_reference: str = Field(..., alias="avatarReference")
