"""
Local persistence of provisioned portals.

Each portal is stored as ``<directory>/<namespace>-<chain>.json`` so that
setup_storage can skip minting a second portal for the same namespace.
"""

import json
import logging
import os
from typing import Any, Dict, Optional

import nacl.exceptions

from fileverse_agents.config import (
    decrypt_with_password,
    encrypt_with_password,
    get_config_value,
)
from fileverse_agents.errors import ConfigurationError
from fileverse_agents.models import PortalCredentials

logger = logging.getLogger(__name__)

# Private halves of the portal keys (aliases as stored on disk)
SECRET_KEY_FIELDS = ("viewSecret", "editSecret", "portalDecryptionKey", "memberDecryptionKey")


class CredentialStore:
    """Reads and writes PortalCredentials as JSON files."""

    def __init__(self, directory: Optional[str] = None, password: Optional[str] = None):
        """
        Initialize the store.

        Args:
            directory: Folder holding credential files (from config if None)
            password: If set, secret keys are encrypted at rest with it
        """
        if directory is None:
            directory = get_config_value("credentials", "directory", "creds")
        self.directory = os.path.expanduser(directory)
        self.password = password

    def path_for(self, namespace: str) -> str:
        return os.path.join(self.directory, f"{namespace}.json")

    def exists(self, namespace: str) -> bool:
        return os.path.exists(self.path_for(namespace))

    def _encrypt_keys(self, keys: Dict[str, Any]) -> Dict[str, Any]:
        protected = dict(keys)
        for field in SECRET_KEY_FIELDS:
            if isinstance(protected.get(field), str):
                encrypted, salt = encrypt_with_password(protected[field], self.password)
                protected[field] = {"encrypted": encrypted, "salt": salt}
        return protected

    def _decrypt_keys(self, keys: Dict[str, Any], namespace: str) -> Dict[str, Any]:
        plain = dict(keys)
        for field in SECRET_KEY_FIELDS:
            value = plain.get(field)
            if not isinstance(value, dict):
                continue
            if not self.password:
                raise ConfigurationError(
                    "Credentials are password-protected; a password is required",
                    namespace=namespace,
                )
            try:
                plain[field] = decrypt_with_password(
                    value["encrypted"], value["salt"], self.password
                )
            except nacl.exceptions.CryptoError:
                raise ConfigurationError(
                    "Wrong password for stored credentials", namespace=namespace
                )
        return plain

    def load(self, namespace: str) -> Optional[PortalCredentials]:
        """
        Load credentials for a namespaced key.

        Returns:
            Optional[PortalCredentials]: None if no file exists
        """
        path = self.path_for(namespace)
        if not os.path.exists(path):
            return None

        try:
            with open(path, "r") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise ConfigurationError(f"Could not read credentials file {path}: {e}")

        data["keys"] = self._decrypt_keys(data.get("keys") or {}, namespace)
        return PortalCredentials.model_validate(data)

    def save(self, credentials: PortalCredentials) -> str:
        """Write credentials and return the file path."""
        os.makedirs(self.directory, exist_ok=True)

        data = credentials.model_dump(by_alias=True)
        if self.password:
            data["keys"] = self._encrypt_keys(data["keys"])

        path = self.path_for(credentials.namespace)
        with open(path, "w") as f:
            json.dump(data, f, indent=2)

        logger.debug("Saved portal credentials to %s", path)
        return path
