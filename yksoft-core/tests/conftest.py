"""
Shared fixtures for yksoft-core tests.
"""

import logging

import pytest
import structlog

RFC4226_SECRET = b"12345678901234567890"


@pytest.fixture
def token_dir(tmp_path):
    return tmp_path / "tokens"


@pytest.fixture
def config(token_dir):
    from yksoft_core.config import YKSoftConfig

    return YKSoftConfig(
        token_dir=token_dir,
        digits=6,
        algorithm="SHA1",
        secret_bytes=20,
        enroll_max_attempts=5,
        log_level="WARNING",
        json_logs=False,
    )


@pytest.fixture
def store(token_dir):
    from yksoft_core.store import SecretStore

    return SecretStore(token_dir)


@pytest.fixture
def manager(store, config):
    from yksoft_core.enrollment import EnrollmentManager

    return EnrollmentManager(store, config)


@pytest.fixture
def session(store):
    from yksoft_core.session import TokenSession

    return TokenSession(store)


@pytest.fixture
def rfc_token(store):
    """A stored token keyed with the RFC 4226 test secret."""
    from yksoft_core.store import TokenRecord

    record = TokenRecord(
        identifier="ddddrfcvectr",
        secret=RFC4226_SECRET,
        moving_factor=0,
        label="rfc",
    )
    store.create(record)
    return record


@pytest.fixture
def reset_logging():
    """Undo setup_logging() so later tests start from structlog defaults."""
    yield
    structlog.reset_defaults()
    root = logging.getLogger()
    for handler in list(root.handlers):
        if type(handler) is logging.StreamHandler:
            root.removeHandler(handler)
    root.setLevel(logging.WARNING)
