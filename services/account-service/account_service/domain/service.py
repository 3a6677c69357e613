"""Account service orchestrating credentials, sessions and profile updates."""

from __future__ import annotations

import hmac
import logging
from typing import Protocol

from schemas import DEFAULT_SUBSCRIPTION, SubscriptionTier

from .account import Account
from .contracts import CreateAccountInput, Credentials, UploadedFile
from .errors import AuthError, ConflictError, InvalidTokenError, ValidationError
from ..media.avatars import AvatarStore, gravatar_url, staged_upload
from ..security.passwords import PasswordHasher
from ..security.tokens import TokenIssuer

logger = logging.getLogger(__name__)

BAD_CREDENTIALS = "Email or password is wrong"
NOT_AUTHORIZED = "Not authorized"
EMAIL_IN_USE = "Email in Use"
NO_FILE_UPLOADED = "No file uploaded"


class AccountStore(Protocol):
    """Persistence contract the service relies on."""

    def find_by_email(self, email: str) -> Account | None: ...

    def find_by_id(self, account_id: str) -> Account | None: ...

    def create_account(self, payload: CreateAccountInput) -> Account: ...

    def update_by_id(self, account_id: str, **fields) -> Account | None: ...


class AccountService:
    """Signup, login and the single-session lifecycle of an account."""

    def __init__(
        self,
        repository: AccountStore,
        hasher: PasswordHasher,
        tokens: TokenIssuer,
        avatars: AvatarStore,
    ) -> None:
        """Store the collaborators; all configuration arrives through them."""
        self._repository = repository
        self._hasher = hasher
        self._tokens = tokens
        self._avatars = avatars

    def signup(self, credentials: Credentials) -> Account:
        """Create an account with a placeholder avatar and no active session."""
        if self._repository.find_by_email(credentials.email) is not None:
            raise ConflictError(EMAIL_IN_USE)

        account = self._repository.create_account(
            CreateAccountInput(
                email=credentials.email,
                password_hash=self._hasher.hash(credentials.password),
                avatar_url=gravatar_url(credentials.email),
                subscription=DEFAULT_SUBSCRIPTION,
            )
        )
        logger.info("account created account_id=%s", account.account_id)
        return account

    def login(self, credentials: Credentials) -> tuple[str, Account]:
        """Verify credentials and start a session, replacing any previous one.

        Unknown emails and wrong passwords fail with the same message so a
        caller cannot probe which accounts exist.
        """
        account = self._repository.find_by_email(credentials.email)
        if account is None or not self._hasher.verify(credentials.password, account.password_hash):
            logger.warning("login rejected")
            raise AuthError(BAD_CREDENTIALS)

        token = self._tokens.issue(account.account_id)
        updated = self._repository.update_by_id(account.account_id, token=token)
        if updated is None:
            raise AuthError(BAD_CREDENTIALS)
        logger.info("session started account_id=%s", account.account_id)
        return token, updated

    def logout(self, account: Account) -> None:
        """Clear the active session; a no-op for accounts already logged out."""
        self._repository.update_by_id(account.account_id, token=None)
        account.token = None
        logger.info("session cleared account_id=%s", account.account_id)

    def get_profile(self, account: Account) -> Account:
        """Project an already-authenticated account; no store access."""
        return account

    def update_subscription(self, account: Account, tier: SubscriptionTier | str) -> Account:
        """Persist a new subscription tier for the account."""
        try:
            tier = SubscriptionTier(tier)
        except ValueError as exc:
            raise ValidationError(f"subscription must be one of: {_tier_names()}") from exc

        updated = self._repository.update_by_id(account.account_id, subscription=tier)
        if updated is None:
            raise AuthError(NOT_AUTHORIZED)
        logger.info("subscription changed account_id=%s tier=%s", account.account_id, tier.value)
        return updated

    def update_avatar(self, account: Account, upload: UploadedFile | None) -> str:
        """Normalise an uploaded image, store it and point the account at it."""
        if upload is None:
            raise ValidationError(NO_FILE_UPLOADED)

        with staged_upload(upload) as staged:
            self._avatars.normalize(staged)
            placed = self._avatars.place(staged, account.account_id)
            reference = self._avatars.reference_for(placed)
            try:
                updated = self._repository.update_by_id(account.account_id, avatar_url=reference)
            except Exception:
                self._avatars.discard(placed)
                raise
            if updated is None:
                self._avatars.discard(placed)
                raise AuthError(NOT_AUTHORIZED)

        self._avatars.prune(account.account_id, keep=placed)
        account.avatar_url = reference
        logger.info("avatar updated account_id=%s", account.account_id)
        return reference

    def authenticate(self, raw_token: str | None) -> Account:
        """Gate a request: the token must verify and still be the account's current one."""
        if not raw_token:
            raise AuthError(NOT_AUTHORIZED)
        try:
            account_id = self._tokens.verify(raw_token)
        except InvalidTokenError as exc:
            logger.debug("token rejected: %s", exc)
            raise AuthError(NOT_AUTHORIZED) from exc

        account = self._repository.find_by_id(account_id)
        if account is None or not account.has_session:
            raise AuthError(NOT_AUTHORIZED)
        if not hmac.compare_digest(account.token.encode("utf-8"), raw_token.encode("utf-8")):
            raise AuthError(NOT_AUTHORIZED)
        return account


def _tier_names() -> str:
    return ", ".join(tier.value for tier in SubscriptionTier)
