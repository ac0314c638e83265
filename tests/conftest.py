"""Test configuration and fixtures."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from disciplina_identity import (
    AuthenticationService,
    InMemoryAuthAuditStore,
    PasswordHasher,
    SecondFactorMode,
    SessionConfig,
    UserCredentials,
    create_authentication_service,
)
from disciplina_identity.ports import IUserCredentialsRepository

TEST_PASSWORD = "correct horse battery staple"  # noqa: S105
TEST_TOTP_SECRET = "JBSWY3DPEHPK3PXPJBSWY3DPEHPK3PXP"  # noqa: S105
TEST_SESSION_SECRET = "test-session-secret-with-32-plus-characters"  # noqa: S105
PASSWORD_CHANGED_AT = datetime(2026, 1, 5, 8, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Controllable UTC clock."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 1, 15, 8, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


class InMemoryUserCredentialsRepository(IUserCredentialsRepository):
    """In-memory user credentials for testing."""

    def __init__(self) -> None:
        self._users: dict[str, UserCredentials] = {}
        self.lookups: list[str] = []

    def add(self, user: UserCredentials) -> None:
        self._users[user.email.lower()] = user

    async def get_by_email(self, email: str) -> UserCredentials | None:
        self.lookups.append(email)
        return self._users.get(email)


class MockDeliveryHook:
    """Mock delivery hook for testing."""

    def __init__(self) -> None:
        self.emails_sent: list[tuple[str, str]] = []

    async def send_email_otp(self, email: str, code: str) -> None:
        self.emails_sent.append((email, code))

    @property
    def last_code(self) -> str:
        return self.emails_sent[-1][1]


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers",
        "integration: marks tests as integration tests that require external services",
    )


@pytest.fixture(scope="session")
def hasher() -> PasswordHasher:
    """Cheap bcrypt hasher so the suite stays fast."""
    return PasswordHasher(rounds=4)


@pytest.fixture(scope="session")
def password_hash(hasher: PasswordHasher) -> str:
    return hasher.hash(TEST_PASSWORD)


@pytest.fixture
def password() -> str:
    return TEST_PASSWORD


@pytest.fixture
def totp_secret() -> str:
    return TEST_TOTP_SECRET


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def users(password_hash: str) -> dict[str, UserCredentials]:
    """Credential records covering every second-factor mode."""
    return {
        "plain": UserCredentials(
            user_id="user-alice",
            email="alice@school.edu",
            password_hash=password_hash,
            password_changed_at=PASSWORD_CHANGED_AT,
            role="admin",
            name="Alice",
        ),
        "email": UserCredentials(
            user_id="user-bob",
            email="bob@school.edu",
            password_hash=password_hash,
            password_changed_at=PASSWORD_CHANGED_AT,
            role="teacher",
            second_factor_mode=SecondFactorMode.EMAIL,
            name="Bob",
        ),
        "totp": UserCredentials(
            user_id="user-carol",
            email="carol@school.edu",
            password_hash=password_hash,
            password_changed_at=PASSWORD_CHANGED_AT,
            role="student",
            second_factor_mode=SecondFactorMode.TOTP,
            totp_secret=TEST_TOTP_SECRET,
            name="Carol",
        ),
        "inactive": UserCredentials(
            user_id="user-dave",
            email="dave@school.edu",
            password_hash=password_hash,
            password_changed_at=PASSWORD_CHANGED_AT,
            is_active=False,
        ),
        "totp_unconfigured": UserCredentials(
            user_id="user-erin",
            email="erin@school.edu",
            password_hash=password_hash,
            password_changed_at=PASSWORD_CHANGED_AT,
            second_factor_mode=SecondFactorMode.TOTP,
        ),
    }


@pytest.fixture
def user_repository(
    users: dict[str, UserCredentials],
) -> InMemoryUserCredentialsRepository:
    repo = InMemoryUserCredentialsRepository()
    for user in users.values():
        repo.add(user)
    return repo


@pytest.fixture
def delivery_hook() -> MockDeliveryHook:
    return MockDeliveryHook()


@pytest.fixture
def audit_store() -> InMemoryAuthAuditStore:
    return InMemoryAuthAuditStore()


@pytest.fixture
def session_config() -> SessionConfig:
    return SessionConfig(secret_key=TEST_SESSION_SECRET)


@pytest.fixture
def service(
    user_repository: InMemoryUserCredentialsRepository,
    session_config: SessionConfig,
    delivery_hook: MockDeliveryHook,
    hasher: PasswordHasher,
    audit_store: InMemoryAuthAuditStore,
    clock: FakeClock,
) -> AuthenticationService:
    """Fully wired service sharing the fake clock."""
    return create_authentication_service(
        user_repository=user_repository,
        session_config=session_config,
        delivery_hook=delivery_hook,
        password_hasher=hasher,
        audit_store=audit_store,
        clock=clock,
    )
