"""Root pytest configuration for dtk-registry tests."""
import pytest

from dtk_registry.credentials import PULL_SECRET_NAME, PULL_SECRET_NAMESPACE
from dtk_registry.registry import Registry
from dtk_registry.settings import Settings

from .helpers.layer_helpers import REG_AUTH, dockerconfigjson
from .storage.fakes import FakeCredentialStore, FakeRegistryTransport


@pytest.fixture(autouse=True)
def test_env(monkeypatch):
    """Keep the developer's environment out of settings-driven tests."""
    for var in (
        "DTK_PULL_SECRET_NAMESPACE",
        "DTK_PULL_SECRET_NAME",
        "DTK_PULL_SECRET_KEY",
        "DTK_SECRET_STORE",
        "DTK_SECRET_DIR",
        "DTK_ARCH",
        "DTK_REGISTRY_INSECURE",
        "DTK_HTTP_TIMEOUT",
        "KUBECONFIG",
    ):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def settings():
    """Standard test settings."""
    return Settings(architecture="amd64")


@pytest.fixture
def transport():
    """Empty in-memory registry."""
    return FakeRegistryTransport()


@pytest.fixture
def credential_store():
    """Pull secret with a token for reg.io and an anonymous entry for public.io."""
    store = FakeCredentialStore()
    store.put(PULL_SECRET_NAMESPACE, PULL_SECRET_NAME, dockerconfigjson({
        "reg.io": {"Auth": REG_AUTH, "Email": "ci@example.com"},
        "public.io": {"Auth": "", "Email": ""},
    }))
    return store


@pytest.fixture
def registry(transport, credential_store):
    """Engine over the fakes, pinned to amd64."""
    return Registry(transport, credential_store, architecture="amd64")
