from __future__ import annotations

import dataclasses
import io
import uuid
from datetime import datetime, timezone

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from PIL import Image

from account_service.api import routes
from account_service.api.errors import install_error_handlers
from account_service.domain.account import Account
from account_service.domain.contracts import CreateAccountInput
from account_service.domain.errors import ConflictError
from account_service.domain.service import AccountService
from account_service.media.avatars import AvatarStore
from account_service.repository import UPDATABLE_FIELDS
from account_service.security.passwords import PasswordHasher
from account_service.security.tokens import TokenIssuer


class FakeRepository:
    """In-memory repository mimicking Postgres-backed behaviors."""

    def __init__(self) -> None:
        self._accounts: dict[str, Account] = {}

    def find_by_email(self, email: str):
        for account in self._accounts.values():
            if account.email == email:
                return dataclasses.replace(account)
        return None

    def find_by_id(self, account_id: str):
        account = self._accounts.get(account_id)
        return dataclasses.replace(account) if account else None

    def create_account(self, payload: CreateAccountInput):
        if any(account.email == payload.email for account in self._accounts.values()):
            raise ConflictError("Email in Use")
        account = Account(
            account_id=str(uuid.uuid4()),
            email=payload.email,
            password_hash=payload.password_hash,
            avatar_url=payload.avatar_url,
            subscription=payload.subscription,
            created_at=datetime.now(timezone.utc),
        )
        self._accounts[account.account_id] = account
        return dataclasses.replace(account)

    def update_by_id(self, account_id: str, **fields):
        assert set(fields) <= UPDATABLE_FIELDS
        account = self._accounts.get(account_id)
        if account is None:
            return None
        for name, value in fields.items():
            setattr(account, name, value)
        return dataclasses.replace(account)

    def stored(self, account_id: str) -> Account:
        return self._accounts[account_id]


@pytest.fixture
def repository() -> FakeRepository:
    return FakeRepository()


@pytest.fixture
def tokens() -> TokenIssuer:
    return TokenIssuer(secret="test-secret", issuer="test.accounts", ttl_seconds=3600)


@pytest.fixture
def avatar_store(tmp_path) -> AvatarStore:
    return AvatarStore(tmp_path / "public" / "avatars", tmp_path / "uploads", size=250)


@pytest.fixture
def service(repository, tokens, avatar_store) -> AccountService:
    # minimum bcrypt cost keeps the suite fast
    return AccountService(repository, PasswordHasher(rounds=4), tokens, avatar_store)


@pytest.fixture
def api_client(service, avatar_store):
    """Provide a FastAPI test client with isolated state."""
    app = FastAPI()
    install_error_handlers(app)
    app.include_router(routes.router)
    app.state.account_service = service
    app.state.avatar_store = avatar_store

    with TestClient(app) as client:
        yield client


@pytest.fixture
def png_bytes() -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (640, 480), color="#3366aa").save(buffer, format="PNG")
    return buffer.getvalue()
