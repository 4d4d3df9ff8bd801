"""Tests for the credential store."""

import json
import stat
from pathlib import Path

from nob.config.store import Credentials, CredentialStore


class TestCredentials:
    """Tests for Credentials dataclass."""

    def test_round_trip_dict(self) -> None:
        creds = Credentials("acct", "tok")
        assert Credentials.from_dict(creds.to_dict()) == creds

    def test_empty_values_dropped(self) -> None:
        assert Credentials().to_dict() == {}
        assert Credentials.from_dict({"cloudflare_account_id": ""}) == Credentials()


class TestCredentialStore:
    """Tests for CredentialStore."""

    def test_missing_file(self, credential_store: CredentialStore) -> None:
        assert credential_store.load() == Credentials()

    def test_save_and_load(self, credential_store: CredentialStore) -> None:
        credential_store.save(Credentials("acct", "tok"))
        assert credential_store.load().has_personal_key is True

    def test_permissions(self, credential_store: CredentialStore) -> None:
        """The file should be user-only, inside a user-only directory."""
        credential_store.save(Credentials("acct", "tok"))

        assert stat.S_IMODE(credential_store.path.stat().st_mode) == 0o600
        assert stat.S_IMODE(credential_store.path.parent.stat().st_mode) == 0o700

    def test_corrupt_file(self, credential_store: CredentialStore) -> None:
        credential_store.path.parent.mkdir(parents=True)
        credential_store.path.write_text("{not json")
        assert credential_store.load() == Credentials()

    def test_undecodable_file(self, credential_store: CredentialStore) -> None:
        """A binary credential file should load as an empty record."""
        credential_store.path.parent.mkdir(parents=True)
        credential_store.path.write_bytes(b"\xff\xfe\x00garbage")
        assert credential_store.load() == Credentials()

    def test_non_object_file(self, credential_store: CredentialStore) -> None:
        credential_store.path.parent.mkdir(parents=True)
        credential_store.path.write_text(json.dumps(["a"]))
        assert credential_store.load() == Credentials()

    def test_clear(self, credential_store: CredentialStore) -> None:
        credential_store.save(Credentials("acct", "tok"))

        assert credential_store.clear_credentials() is True
        assert credential_store.load() == Credentials()
        assert json.loads(credential_store.path.read_text()) == {}

    def test_clear_nothing(self, credential_store: CredentialStore) -> None:
        assert credential_store.clear_credentials() is False

    def test_default_path(self) -> None:
        assert CredentialStore().path == Path.home() / ".nob" / "config.json"
