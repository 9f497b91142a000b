"""
Portal key generation.

A portal is minted with view/edit DIDs and the SHA-256 verifiers of its
portal and member key pairs; the keys themselves stay in the local
credentials file.
"""

import base64
import hashlib
from typing import Tuple

import base58
import nacl.public
import nacl.signing

from fileverse_agents.models import PortalKeys, PortalKeyVerifiers

# Multicodec prefix for an ed25519 public key
ED25519_MULTICODEC = b"\xed\x01"


def _b64(data: bytes) -> str:
    return base64.b64encode(data).decode("utf-8")


def generate_did_key() -> Tuple[str, str]:
    """
    Generate an ed25519 ``did:key`` identity.

    Returns:
        Tuple[str, str]: The DID and the base64-encoded signing seed
    """
    signing_key = nacl.signing.SigningKey.generate()
    public_key = bytes(signing_key.verify_key)
    did = "did:key:z" + base58.b58encode(ED25519_MULTICODEC + public_key).decode("utf-8")
    return did, _b64(bytes(signing_key))


def generate_portal_keys() -> PortalKeys:
    view_did, view_secret = generate_did_key()
    edit_did, edit_secret = generate_did_key()
    portal_key = nacl.public.PrivateKey.generate()
    member_key = nacl.public.PrivateKey.generate()

    return PortalKeys(
        view_did=view_did,
        edit_did=edit_did,
        view_secret=view_secret,
        edit_secret=edit_secret,
        portal_encryption_key=_b64(bytes(portal_key.public_key)),
        portal_decryption_key=_b64(bytes(portal_key)),
        member_encryption_key=_b64(bytes(member_key.public_key)),
        member_decryption_key=_b64(bytes(member_key)),
    )


def key_verifier(key: str) -> str:
    """0x-prefixed SHA-256 digest of a base64 key, sized for a bytes32 slot."""
    return "0x" + hashlib.sha256(base64.b64decode(key)).hexdigest()


def get_portal_key_verifiers(keys: PortalKeys) -> PortalKeyVerifiers:
    return PortalKeyVerifiers(
        portal_encryption_key_verifier=key_verifier(keys.portal_encryption_key),
        portal_decryption_key_verifier=key_verifier(keys.portal_decryption_key),
        member_encryption_key_verifier=key_verifier(keys.member_encryption_key),
        member_decryption_key_verifier=key_verifier(keys.member_decryption_key),
    )
