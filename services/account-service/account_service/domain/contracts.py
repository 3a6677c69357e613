"""Domain-level request contracts shared by multiple layers."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from schemas import SubscriptionTier


@dataclass(slots=True)
class Credentials:
    """Validated email/password pair used by signup and login."""

    email: str
    password: str


@dataclass(slots=True)
class CreateAccountInput:
    """Fields the store needs to persist a new account."""

    email: str
    password_hash: str
    avatar_url: str
    subscription: SubscriptionTier


@dataclass(slots=True)
class UploadedFile:
    """A transient upload already spooled to local disk."""

    path: Path
    original_filename: str
