from __future__ import annotations

import copy
import threading
from dataclasses import dataclass
from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from auth_service.config import Settings
from auth_service.domain.account import Account, resolve_save_fields
from auth_service.domain.contracts import NewAccount
from auth_service.domain.service import AuthService
from auth_service.domain.validation import validate_account_fields
from auth_service.errors import ConflictError
from auth_service.main import create_app
from auth_service.security.passwords import hash_password, verify_password
from auth_service.security.tokens import TokenService

TEST_ROUNDS = 4


class FakeAccountRepository:
    """In-memory repository mimicking the Postgres-backed behaviours.

    Stored accounts are copied on every read and write, so callers never share
    state with the "database", and the email index is guarded by a lock.
    """

    def __init__(self) -> None:
        self._accounts: dict[str, Account] = {}
        self._emails: dict[str, str] = {}
        self._lock = threading.Lock()
        self.saves: list[tuple[str, bool, tuple[str, ...]]] = []

    def _read(self, account: Account, *, password: bool = False, refresh: bool = False) -> Account:
        result = copy.deepcopy(account)
        if not password:
            result.password_hash = None
        if not refresh:
            result.refresh_token = None
        return result

    def find_by_email(self, email: str, *, include_password: bool = False) -> Account | None:
        with self._lock:
            account_id = self._emails.get(email.strip().lower())
            if account_id is None:
                return None
            return self._read(self._accounts[account_id], password=include_password)

    def find_by_id(self, account_id: str, *, include_refresh_token: bool = False) -> Account | None:
        with self._lock:
            account = self._accounts.get(account_id)
            return self._read(account, refresh=include_refresh_token) if account else None

    def create(self, payload: NewAccount) -> Account:
        email = payload.email.strip().lower()
        validate_account_fields(
            email=email,
            first_name=payload.first_name,
            last_name=payload.last_name,
            roles=payload.roles,
            password=payload.password,
        )
        account = Account(
            account_id=payload.account_id,
            email=email,
            first_name=payload.first_name,
            last_name=payload.last_name,
            roles=list(payload.roles),
            status=payload.status,
            created_at=datetime.now(timezone.utc),
            last_login_at=payload.last_login_at,
            password_hash=hash_password(payload.password, rounds=TEST_ROUNDS),
            refresh_token=payload.refresh_token,
        )
        with self._lock:
            if email in self._emails:
                raise ConflictError("User with this email already exists")
            self._emails[email] = account.account_id
            self._accounts[account.account_id] = account
        return self._read(account, refresh=True)

    def save(
        self,
        account: Account,
        *,
        skip_validation: bool = False,
        fields: tuple[str, ...] | None = None,
    ) -> Account:
        columns = resolve_save_fields(fields, skip_validation=skip_validation)
        if not skip_validation:
            validate_account_fields(
                email=account.email,
                first_name=account.first_name,
                last_name=account.last_name,
                roles=account.roles,
            )
        with self._lock:
            stored = self._accounts[account.account_id]
            for column in columns:
                setattr(stored, column, copy.deepcopy(getattr(account, column)))
            self.saves.append((account.account_id, skip_validation, columns))
        return account

    def verify_password(self, account: Account, plaintext: str) -> bool:
        if account.password_hash is None:
            raise ValueError("password hash not loaded")
        return verify_password(plaintext, account.password_hash)

    # test helpers

    def stored(self, account_id: str) -> Account:
        return self._accounts[account_id]


@dataclass
class AuthHarness:
    service: AuthService
    repository: FakeAccountRepository
    tokens: TokenService
    settings: Settings


@pytest.fixture
def settings() -> Settings:
    return Settings(
        environment="test",
        jwt_access_secret="test-access-secret-with-enough-length",
        jwt_access_ttl_seconds=900,
        jwt_refresh_secret="test-refresh-secret-with-enough-length",
        jwt_refresh_ttl_seconds=3600,
        jwt_issuer="auth-service-test",
        bcrypt_rounds=TEST_ROUNDS,
    )


@pytest.fixture
def tokens(settings: Settings) -> TokenService:
    return TokenService(settings.token_settings())


@pytest.fixture
def repository() -> FakeAccountRepository:
    return FakeAccountRepository()


@pytest.fixture
def harness(settings, tokens, repository) -> AuthHarness:
    return AuthHarness(
        service=AuthService(repository, tokens),
        repository=repository,
        tokens=tokens,
        settings=settings,
    )


@pytest.fixture
def api_client(settings, repository):
    """Provide a FastAPI test client with isolated state."""
    app = create_app(settings, store=repository)
    with TestClient(app) as client:
        yield client, app.state.auth_service
