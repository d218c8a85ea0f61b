"""Shared pytest fixtures for SuiteBook tests."""
import sys
sys.dont_write_bytecode = True

import pytest  # noqa: E402

from helpers import TEST_AUDIENCE, TEST_ISSUER, TEST_JWKS_URL, FakeBackendClient  # noqa: E402


@pytest.fixture(autouse=True)
def _reset_oidc_jwks_cache():
    """Reset the module-level JWKS cache so keys never leak between tests."""
    import suitebook.api.auth as auth_module

    auth_module._jwks_cache = None
    auth_module._jwks_cache_time = 0
    yield
    auth_module._jwks_cache = None
    auth_module._jwks_cache_time = 0


@pytest.fixture
def oidc_env():
    return {
        "OIDC_ISSUER": TEST_ISSUER,
        "OIDC_AUDIENCE": TEST_AUDIENCE,
        "OIDC_JWKS_URL": TEST_JWKS_URL,
    }


@pytest.fixture
def fake_client():
    return FakeBackendClient()
