from __future__ import annotations

import pytest

from account_service.repository import AccountRepository


class UnusedPool:
    def connection(self):  # pragma: no cover - must never be reached
        raise AssertionError("no database access expected")


def test_update_by_id_rejects_unknown_columns():
    repository = AccountRepository(UnusedPool())  # type: ignore[arg-type]
    with pytest.raises(ValueError, match="email"):
        repository.update_by_id("account-1", email="new@example.com")
