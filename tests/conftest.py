import pytest

from abi_resolver.config import Config


@pytest.fixture
def config() -> Config:
    return Config(api_key="test-key", request_timeout=5, signature_max_workers=4)
