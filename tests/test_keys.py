"""
Tests for portal key generation.
"""

import base64
import hashlib

import base58

from fileverse_agents.keys import (
    ED25519_MULTICODEC,
    generate_did_key,
    generate_portal_keys,
    get_portal_key_verifiers,
    key_verifier,
)


def test_did_key_encodes_ed25519_public_key():
    did, seed = generate_did_key()

    assert did.startswith("did:key:z")
    decoded = base58.b58decode(did[len("did:key:z"):])
    assert decoded[:2] == ED25519_MULTICODEC
    assert len(decoded) == 34
    assert len(base64.b64decode(seed)) == 32


def test_portal_keys_are_unique():
    first = generate_portal_keys()
    second = generate_portal_keys()

    assert first.view_did != first.edit_did
    assert first.portal_encryption_key != second.portal_encryption_key
    assert len(base64.b64decode(first.member_decryption_key)) == 32


def test_portal_keys_serialize_with_aliases():
    dumped = generate_portal_keys().model_dump(by_alias=True)

    assert set(dumped) == {
        "viewDID",
        "editDID",
        "viewSecret",
        "editSecret",
        "portalEncryptionKey",
        "portalDecryptionKey",
        "memberEncryptionKey",
        "memberDecryptionKey",
    }


def test_key_verifier_is_sha256_of_raw_key():
    raw = bytes(range(32))
    key = base64.b64encode(raw).decode("utf-8")

    assert key_verifier(key) == "0x" + hashlib.sha256(raw).hexdigest()


def test_verifiers_cover_all_key_pairs():
    keys = generate_portal_keys()

    verifiers = get_portal_key_verifiers(keys)

    assert verifiers.portal_encryption_key_verifier == key_verifier(keys.portal_encryption_key)
    assert verifiers.member_decryption_key_verifier == key_verifier(keys.member_decryption_key)
    assert len(set(verifiers.model_dump().values())) == 4
