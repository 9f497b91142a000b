"""
Validation helpers for the Fileverse Agents SDK.

All functions are pure and raise before any side-effecting work starts.
"""

import json
from typing import Any, Dict, Optional

from fileverse_agents.constants import SUPPORTED_CHAINS
from fileverse_agents.errors import ConfigurationError, ValidationError

STORAGE_PROVIDER_METHODS = (
    "upload",
    "download",
    "download_bytes",
    "unpin",
    "protocol",
    "is_connected",
)

CREATE_OPTION_KEYS = {"access_condition"}


def validate_agent_config(chain: Any, account: Any, storage_provider: Any) -> str:
    """
    Validate FileverseAgent constructor parameters.

    Returns:
        str: The normalized chain name

    Raises:
        ConfigurationError: If any parameter is missing or invalid
    """
    if not chain:
        raise ConfigurationError(
            f"Chain is required - options: {', '.join(SUPPORTED_CHAINS)}"
        )

    if account is None:
        raise ConfigurationError("Signing account is required")

    if not getattr(account, "address", None):
        raise ConfigurationError("Signing account must expose an address")

    validate_storage_provider(storage_provider)

    return validate_chain(chain)


def validate_chain(chain: Any) -> str:
    """Return the lowercase chain name, or raise if the chain is unsupported."""
    if isinstance(chain, str):
        chain_name = chain.lower()
    else:
        chain_name = str(getattr(chain, "name", "") or "").lower()

    if chain_name not in SUPPORTED_CHAINS:
        raise ConfigurationError(
            f"Unsupported chain: {chain_name or chain!r}. "
            f"Supported chains: {', '.join(SUPPORTED_CHAINS)}"
        )
    return chain_name


def validate_file_id(file_id: Any) -> int:
    """
    Validate a file id and normalize it to an integer.

    Accepts non-negative integers and decimal strings.
    """
    if isinstance(file_id, bool) or file_id is None:
        raise ValidationError("Invalid file ID provided", file_id=file_id)

    if isinstance(file_id, int):
        normalized = file_id
    elif isinstance(file_id, str) and file_id.strip().isdigit():
        normalized = int(file_id.strip())
    else:
        raise ValidationError("Invalid file ID provided", file_id=file_id)

    if normalized < 0:
        raise ValidationError("File ID must not be negative", file_id=file_id)
    return normalized


def validate_file_content(content: Any) -> None:
    """Validate that content is non-empty text, bytes or JSON-serializable data."""
    if content is None:
        raise ValidationError("File content cannot be None")

    if not isinstance(content, (str, bytes, bytearray, dict, list)):
        raise ValidationError(
            f"File content must be text, bytes or JSON data, got {type(content).__name__}"
        )

    if len(content) == 0:
        raise ValidationError("File content cannot be empty")

    if isinstance(content, (dict, list)):
        try:
            json.dumps(content)
        except (TypeError, ValueError) as e:
            raise ValidationError(f"File content is not JSON-serializable: {e}")


def validate_create_options(options: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Validate create/update options and return them as a dict.

    An access condition that is explicitly supplied must be non-empty.
    """
    if options is None:
        return {}

    if not isinstance(options, dict):
        raise ValidationError("Options must be a dict")

    unknown = set(options) - CREATE_OPTION_KEYS
    if unknown:
        raise ValidationError(f"Unknown options: {', '.join(sorted(unknown))}")

    if "access_condition" in options:
        condition = options["access_condition"]
        if condition is None or (isinstance(condition, (dict, list)) and not condition):
            raise ValidationError("Access condition must not be empty")

    return options


def validate_storage_provider(provider: Any) -> None:
    """Check that a storage provider implements the full capability surface."""
    if provider is None:
        raise ConfigurationError("Storage provider is required")

    for method in STORAGE_PROVIDER_METHODS:
        if not callable(getattr(provider, method, None)):
            raise ConfigurationError(f"Storage provider must implement {method}")


def validate_reference(reference: Any) -> str:
    """Validate a storage reference."""
    if not reference or not isinstance(reference, str):
        raise ValidationError("Reference must be a non-empty string")
    return reference
