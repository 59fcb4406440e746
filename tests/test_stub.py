"""Tests for the reference API: crypto helpers and store rules."""
import pytest
from aiohttp import web

from securevault.conf import MasterSecretMode
from securevault.stub import ApiRejected, VaultStore, decrypt_secret, encrypt_secret
from securevault.stub.app import USER_KEY
from securevault.stub.crypto import DecryptFailure, hash_secret, verify_secret

from .conftest import TEST_ITERATIONS


class TestCrypto:

    def test_encrypt_is_salted(self):
        a = encrypt_secret("hunter2", "1234", TEST_ITERATIONS)
        b = encrypt_secret("hunter2", "1234", TEST_ITERATIONS)
        assert a != b
        assert decrypt_secret(a, "1234", TEST_ITERATIONS) == "hunter2"

    def test_wrong_master_fails(self):
        blob = encrypt_secret("hunter2", "1234", TEST_ITERATIONS)
        with pytest.raises(DecryptFailure):
            decrypt_secret(blob, "4321", TEST_ITERATIONS)

    def test_short_ciphertext(self):
        with pytest.raises(DecryptFailure, match="too short"):
            decrypt_secret("AAAA", "1234", TEST_ITERATIONS)

    def test_verifier(self):
        verifier = hash_secret("Secret1!", TEST_ITERATIONS)
        assert verify_secret("Secret1!", verifier, TEST_ITERATIONS) is True
        assert verify_secret("Secret1?", verifier, TEST_ITERATIONS) is False


class TestStore:

    @pytest.fixture
    def pin_store(self):
        return VaultStore(mode=MasterSecretMode.PIN, iterations=TEST_ITERATIONS)

    def test_register_rejects_weak_login(self, pin_store):
        with pytest.raises(ApiRejected):
            pin_store.register("alice", "weakpass", "1234")

    def test_register_rejects_bad_pin(self, pin_store):
        with pytest.raises(ApiRejected, match="4 digits"):
            pin_store.register("alice", "Secret1!", "12345")

    def test_entries_are_per_user(self, pin_store):
        token = pin_store.register("alice", "Secret1!", "1234")
        pin_store.register("bob", "Bobby22!", "5678")
        entry = pin_store.add("alice", {
            "appName": "GitHub", "appUsername": "alice",
            "password": "gh", "masterPin": "1234",
        })
        assert pin_store.resolve(token) == "alice"
        assert pin_store.list_for("bob") == []
        with pytest.raises(ApiRejected, match="not found"):
            pin_store.reveal("bob", entry.id, {"masterPin": "5678"})
        assert pin_store.reveal("alice", entry.id, {"masterPin": "1234"}) == "gh"

    def test_password_variant_uses_master_password(self):
        store = VaultStore(mode=MasterSecretMode.PASSWORD, iterations=TEST_ITERATIONS)
        store.register("carol", "Secret1!", "Master9?")
        entry = store.add("carol", {
            "appName": "Bank", "appUsername": "carol",
            "password": "b4nk", "masterPassword": "Master9?",
        })
        with pytest.raises(ApiRejected, match="Invalid master password"):
            store.reveal("carol", entry.id, {"masterPin": "1234"})
        assert store.reveal("carol", entry.id, {"masterPassword": "Master9?"}) == "b4nk"

    def test_revoke(self, pin_store):
        token = pin_store.register("alice", "Secret1!", "1234")
        pin_store.revoke(token)
        assert pin_store.resolve(token) is None


class TestApp:

    def test_user_key_is_typed(self):
        assert isinstance(USER_KEY, web.RequestKey)

    @pytest.mark.asyncio
    @pytest.mark.filterwarnings("error::aiohttp.web.NotAppKeyWarning")
    async def test_authenticated_request_without_key_warning(self, alice, client):
        assert await client.list_entries() == []
