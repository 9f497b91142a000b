"""
Tests for the local credential store.
"""

import json

import pytest

from fileverse_agents.config import set_config_value
from fileverse_agents.credentials import CredentialStore
from fileverse_agents.errors import ConfigurationError
from fileverse_agents.keys import generate_portal_keys, get_portal_key_verifiers
from fileverse_agents.models import PortalCredentials


@pytest.fixture
def credentials():
    keys = generate_portal_keys()
    return PortalCredentials(
        portal_address="0x00000000000000000000000000000000000000aa",
        owner="0x00000000000000000000000000000000000000bb",
        namespace="notes-sepolia",
        metadata_ipfs_hash="ipfs://bafkmeta",
        keys=keys.model_dump(by_alias=True),
        verifiers=get_portal_key_verifiers(keys).model_dump(by_alias=True),
    )


def test_missing_namespace_loads_none(tmp_path):
    store = CredentialStore(directory=str(tmp_path))

    assert store.load("notes-sepolia") is None
    assert not store.exists("notes-sepolia")


def test_save_and_load(tmp_path, credentials):
    store = CredentialStore(directory=str(tmp_path))

    path = store.save(credentials)

    assert path == str(tmp_path / "notes-sepolia.json")
    with open(path) as f:
        data = json.load(f)
    assert data["portalAddress"] == credentials.portal_address
    assert data["metadataRef"] == "ipfs://bafkmeta"

    loaded = store.load("notes-sepolia")
    assert loaded == credentials


def test_password_protects_secret_keys(tmp_path, credentials):
    store = CredentialStore(directory=str(tmp_path), password="hunter2")
    store.save(credentials)

    with open(store.path_for("notes-sepolia")) as f:
        data = json.load(f)
    assert set(data["keys"]["viewSecret"]) == {"encrypted", "salt"}
    assert data["keys"]["viewSecret"]["encrypted"] != credentials.keys["viewSecret"]
    assert data["keys"]["viewDID"] == credentials.keys["viewDID"]

    assert store.load("notes-sepolia") == credentials


def test_protected_credentials_need_password(tmp_path, credentials):
    CredentialStore(directory=str(tmp_path), password="hunter2").save(credentials)

    with pytest.raises(ConfigurationError):
        CredentialStore(directory=str(tmp_path)).load("notes-sepolia")


def test_wrong_password(tmp_path, credentials):
    CredentialStore(directory=str(tmp_path), password="hunter2").save(credentials)

    with pytest.raises(ConfigurationError):
        CredentialStore(directory=str(tmp_path), password="wrong").load("notes-sepolia")


def test_corrupt_file(tmp_path):
    store = CredentialStore(directory=str(tmp_path))
    (tmp_path / "notes-sepolia.json").write_text("{not json")

    with pytest.raises(ConfigurationError):
        store.load("notes-sepolia")


def test_directory_from_config(tmp_path):
    set_config_value("credentials", "directory", str(tmp_path / "portals"))

    store = CredentialStore()

    assert store.path_for("a-gnosis") == str(tmp_path / "portals" / "a-gnosis.json")
