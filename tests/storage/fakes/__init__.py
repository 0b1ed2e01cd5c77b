"""Test doubles for the registry transport and credential store."""
from .fake_credential_store import FakeCredentialStore
from .fake_transport import FakeRegistryTransport

__all__ = ["FakeCredentialStore", "FakeRegistryTransport"]
