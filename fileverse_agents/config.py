"""
Configuration management for Fileverse Agents SDK.

This module handles loading and saving configuration from the user's home directory,
specifically in ~/.fileverse/config.json.
"""

import base64
import copy
import getpass
import json
import logging
import os
from typing import Any, Dict, Optional, Tuple

import nacl.secret
import nacl.utils
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC
from dotenv import load_dotenv

from fileverse_agents.constants import DEFAULT_DOWNLOAD_TIMEOUT

logger = logging.getLogger(__name__)

# Define constants
CONFIG_DIR = os.path.expanduser("~/.fileverse")
CONFIG_FILE = os.path.join(CONFIG_DIR, "config.json")
DEFAULT_CONFIG = {
    "chain": {
        "name": "sepolia",
        "rpc_url": None,
        "private_key": None,
        "private_key_encoded": False,
        "private_key_salt": None,
    },
    "storage": {
        "provider": "pinata",
        "pinata_jwt": None,
        "pinata_gateway": None,
        "ipfs_api_url": "http://localhost:5001",
        "download_timeout": DEFAULT_DOWNLOAD_TIMEOUT,
    },
    "taco": {
        "domain": None,
        "ritual_id": None,
        "rpc_url": None,
        "backend": None,  # dotted path, e.g. "my_package.taco:backend"
    },
    "credentials": {
        "directory": "creds",
        "namespace": None,
    },
    "logging": {
        "level": "INFO",
    },
}

# Environment variable -> (section, key, converter)
ENV_MAPPING = {
    "FILEVERSE_CHAIN": ("chain", "name", str),
    "FILEVERSE_RPC_URL": ("chain", "rpc_url", str),
    "PRIVATE_KEY": ("chain", "private_key", str),
    "PINATA_JWT": ("storage", "pinata_jwt", str),
    "PINATA_GATEWAY": ("storage", "pinata_gateway", str),
    "IPFS_API_URL": ("storage", "ipfs_api_url", str),
    "FILEVERSE_STORAGE_PROVIDER": ("storage", "provider", str),
    "TACO_DOMAIN": ("taco", "domain", str),
    "TACO_RITUAL_ID": ("taco", "ritual_id", int),
    "TACO_RPC_URL": ("taco", "rpc_url", str),
    "TACO_BACKEND": ("taco", "backend", str),
    "FILEVERSE_CREDS_DIR": ("credentials", "directory", str),
    "FILEVERSE_NAMESPACE": ("credentials", "namespace", str),
    "FILEVERSE_LOG_LEVEL": ("logging", "level", str),
}


def ensure_config_dir() -> None:
    """Create configuration directory if it doesn't exist."""
    if not os.path.exists(CONFIG_DIR):
        try:
            os.makedirs(CONFIG_DIR, exist_ok=True)
            logger.debug("Created Fileverse configuration directory: %s", CONFIG_DIR)
        except OSError as e:
            logger.warning("Could not create configuration directory: %s", e)


def load_config() -> Dict[str, Any]:
    """
    Load configuration from the config file.

    If the file doesn't exist, create it with default values.

    Returns:
        Dict[str, Any]: The configuration dictionary
    """
    ensure_config_dir()

    if not os.path.exists(CONFIG_FILE):
        save_config(DEFAULT_CONFIG)
        return copy.deepcopy(DEFAULT_CONFIG)

    try:
        with open(CONFIG_FILE, "r") as f:
            config = json.load(f)

        # Ensure all config sections exist (for backward compatibility)
        for section, defaults in DEFAULT_CONFIG.items():
            if section not in config:
                config[section] = copy.deepcopy(defaults)

        return config
    except (OSError, ValueError) as e:
        logger.warning("Could not load configuration file, using defaults: %s", e)
        return copy.deepcopy(DEFAULT_CONFIG)


def save_config(config: Dict[str, Any]) -> bool:
    """
    Save configuration to the config file.

    Args:
        config: The configuration dictionary to save

    Returns:
        bool: True if save was successful, False otherwise
    """
    ensure_config_dir()

    try:
        with open(CONFIG_FILE, "w") as f:
            json.dump(config, f, indent=2)
        return True
    except OSError as e:
        logger.warning("Could not save configuration file: %s", e)
        return False


def get_config_value(section: str, key: str, default: Any = None) -> Any:
    """
    Get a configuration value from a specific section.

    Args:
        section: The configuration section
        key: The configuration key
        default: Default value if not found

    Returns:
        Any: The configuration value or default
    """
    config = load_config()
    value = config.get(section, {}).get(key, default)
    return default if value is None else value


def set_config_value(section: str, key: str, value: Any) -> bool:
    """
    Set a configuration value in a specific section.

    Args:
        section: The configuration section
        key: The configuration key
        value: The value to set

    Returns:
        bool: True if save was successful, False otherwise
    """
    config = load_config()

    if section not in config:
        config[section] = {}

    config[section][key] = value
    return save_config(config)


def _derive_key_from_password(
    password: str, salt: Optional[bytes] = None
) -> Tuple[bytes, bytes]:
    """
    Derive an encryption key from a password using PBKDF2.

    Args:
        password: The user password
        salt: Optional salt bytes. If None, a new random salt is generated

    Returns:
        Tuple[bytes, bytes]: (derived_key, salt)
    """
    if salt is None:
        salt = os.urandom(16)

    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=nacl.secret.SecretBox.KEY_SIZE,
        salt=salt,
        iterations=100000,
    )

    return kdf.derive(password.encode("utf-8")), salt


def encrypt_with_password(data: str, password: str) -> Tuple[str, str]:
    """
    Encrypt data using a password-derived key.

    Args:
        data: String data to encrypt
        password: User password

    Returns:
        Tuple[str, str]: (base64_encrypted_data, base64_salt)
    """
    key, salt = _derive_key_from_password(password)
    box = nacl.secret.SecretBox(key)
    encrypted_data = box.encrypt(data.encode("utf-8"))

    return (
        base64.b64encode(encrypted_data).decode("utf-8"),
        base64.b64encode(salt).decode("utf-8"),
    )


def decrypt_with_password(encrypted_data: str, salt: str, password: str) -> str:
    """
    Decrypt data using a password-derived key.

    Args:
        encrypted_data: Base64-encoded encrypted data
        salt: Base64-encoded salt
        password: User password

    Returns:
        str: Decrypted data

    Raises:
        nacl.exceptions.CryptoError: If the password is wrong
    """
    encrypted_bytes = base64.b64decode(encrypted_data)
    salt_bytes = base64.b64decode(salt)

    key, _ = _derive_key_from_password(password, salt_bytes)
    box = nacl.secret.SecretBox(key)

    return box.decrypt(encrypted_bytes).decode("utf-8")


def set_private_key(
    private_key: str, encode: bool = False, password: Optional[str] = None
) -> bool:
    """
    Store the signing account's private key, optionally password-encrypted.

    Args:
        private_key: Hex-encoded private key
        encode: Whether to encrypt the key with a password
        password: Password for encryption (will prompt if not provided and encode=True)

    Returns:
        bool: True if saving was successful
    """
    config = load_config()

    if encode:
        if password is None:
            password = getpass.getpass("Enter password to encrypt private key: ")
            password_confirm = getpass.getpass("Confirm password: ")
            if password != password_confirm:
                raise ValueError("Passwords do not match")

        encrypted_data, salt = encrypt_with_password(private_key, password)
        config["chain"]["private_key"] = encrypted_data
        config["chain"]["private_key_encoded"] = True
        config["chain"]["private_key_salt"] = salt
    else:
        config["chain"]["private_key"] = private_key
        config["chain"]["private_key_encoded"] = False
        config["chain"]["private_key_salt"] = None

    return save_config(config)


def get_private_key(password: Optional[str] = None) -> Optional[str]:
    """
    Get the signing account's private key from the configuration.

    Args:
        password: Password to decrypt the key if it is stored encrypted
                  (will prompt if needed and not provided)

    Returns:
        Optional[str]: The private key, or None if not configured
    """
    chain_config = load_config()["chain"]
    stored = chain_config.get("private_key")
    if not stored:
        return None

    if not chain_config.get("private_key_encoded", False):
        return stored

    salt = chain_config.get("private_key_salt")
    if not salt:
        logger.error("Encrypted private key found without salt")
        return None

    if password is None:
        password = getpass.getpass("Enter password to decrypt private key: ")

    return decrypt_with_password(stored, salt, password)


def initialize_from_env() -> None:
    """Copy recognized environment variables (and .env entries) into the config file."""
    load_dotenv()
    config = load_config()
    changed = False

    for env_name, (section, key, converter) in ENV_MAPPING.items():
        raw = os.getenv(env_name)
        if not raw:
            continue
        try:
            value = converter(raw)
        except ValueError:
            logger.warning("Ignoring invalid value for %s", env_name)
            continue
        config.setdefault(section, {})[key] = value
        if env_name == "PRIVATE_KEY":
            config["chain"]["private_key_encoded"] = False
            config["chain"]["private_key_salt"] = None
        changed = True

    if changed:
        save_config(config)


def get_all_config() -> Dict[str, Any]:
    """
    Get the complete configuration.

    Returns:
        Dict[str, Any]: The full configuration dictionary
    """
    return load_config()


def reset_config() -> bool:
    """
    Reset configuration to default values.

    Returns:
        bool: True if reset was successful, False otherwise
    """
    return save_config(copy.deepcopy(DEFAULT_CONFIG))


def configure_logging(level: Optional[str] = None) -> logging.Logger:
    """
    Attach a Rich console handler to the SDK logger.

    The level is taken from the argument, then FILEVERSE_LOG_LEVEL, LOG_LEVEL,
    the logging.level config value, and finally INFO.

    Returns:
        logging.Logger: The configured ``fileverse_agents`` logger
    """
    from rich.logging import RichHandler

    level = (
        level
        or os.getenv("FILEVERSE_LOG_LEVEL")
        or os.getenv("LOG_LEVEL")
        or get_config_value("logging", "level", "INFO")
    )

    sdk_logger = logging.getLogger("fileverse_agents")
    sdk_logger.setLevel(str(level).upper())

    if not any(isinstance(h, RichHandler) for h in sdk_logger.handlers):
        handler = RichHandler(show_path=False, rich_tracebacks=True)
        handler.setFormatter(logging.Formatter("%(message)s"))
        sdk_logger.addHandler(handler)

    return sdk_logger
