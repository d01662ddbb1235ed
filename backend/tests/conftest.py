"""
Pytest fixtures for backend testing.
Provides an in-memory Redis pool and store/registry instances bound to it.
"""

import pytest

from mapauth.core.config import get_settings
from mapauth.modules.signatures.service import SignatureStore
from mapauth.modules.templates.service import TemplateMaps
from tests.tools.fake_redis import FakeRedisPool


@pytest.fixture(autouse=True)
def _reset_settings_cache() -> None:
    """Clear the settings LRU cache between tests."""
    get_settings.cache_clear()


@pytest.fixture()
def redis_pool() -> FakeRedisPool:
    return FakeRedisPool()


@pytest.fixture()
def signature_store(redis_pool: FakeRedisPool) -> SignatureStore:
    return SignatureStore(redis_pool, db=0, canonicalization="json-stringify")  # type: ignore[arg-type]


@pytest.fixture()
def template_maps(redis_pool: FakeRedisPool, signature_store: SignatureStore) -> TemplateMaps:
    return TemplateMaps(redis_pool, signature_store, db=0)  # type: ignore[arg-type]
