"""
TACo domain table and adapter configuration.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from fileverse_agents.errors import ConfigurationError

# Each domain's coordinator chain, the chains its conditions may be evaluated
# on, and its open rituals (usable without encryptor allow-listing)
TACO_DOMAINS: Dict[str, Dict[str, Any]] = {
    "DEVNET": {
        "alias": "lynx",
        "chain_id": 80002,
        "condition_chains": [80002, 11155111],
        "suggested_rpc_urls": [
            "https://rpc-amoy.polygon.technology",
            "https://polygon-amoy.drpc.org",
        ],
        "rituals": [27],
    },
    "TESTNET": {
        "alias": "tapir",
        "chain_id": 80002,
        "condition_chains": [80002, 11155111],
        "suggested_rpc_urls": [
            "https://rpc-amoy.polygon.technology",
            "https://polygon-amoy.drpc.org",
        ],
        "rituals": [6],
    },
    "MAINNET": {
        "alias": "mainnet",
        "chain_id": 137,
        "condition_chains": [137, 1],
        "suggested_rpc_urls": [
            "https://polygon-rpc.com",
            "https://rpc-mainnet.polygon.technology",
        ],
        # Custom rituals only
        "rituals": [],
    },
}

DEFAULT_DOMAIN = "TESTNET"


def supported_domains() -> List[str]:
    return list(TACO_DOMAINS)


def normalize_domain(value: Any) -> str:
    """
    Resolve a domain name or alias to its canonical name.

    Args:
        value: ``"testnet"``, ``"TESTNET"``, ``"tapir"``, ...

    Returns:
        str: The canonical domain name

    Raises:
        ConfigurationError: If the domain is unknown
    """
    if not isinstance(value, str) or not value.strip():
        raise ConfigurationError(
            f"TACo domain is required - options: {', '.join(TACO_DOMAINS)}"
        )

    candidate = value.strip()
    if candidate.upper() in TACO_DOMAINS:
        return candidate.upper()

    for name, info in TACO_DOMAINS.items():
        if info["alias"] == candidate.lower():
            return name

    raise ConfigurationError(
        f"Invalid TACo domain: {value}. Supported domains: {', '.join(TACO_DOMAINS)}"
    )


def default_chain_id(domain: str) -> int:
    """Chain id assigned to conditions that do not name one."""
    return TACO_DOMAINS[normalize_domain(domain)]["chain_id"]


def condition_chains(domain: str) -> List[int]:
    return list(TACO_DOMAINS[normalize_domain(domain)]["condition_chains"])


def open_rituals(domain: str) -> List[int]:
    return list(TACO_DOMAINS[normalize_domain(domain)]["rituals"])


def default_rpc_url(domain: str) -> str:
    return TACO_DOMAINS[normalize_domain(domain)]["suggested_rpc_urls"][0]


class TacoConfig(BaseModel):
    """
    Configuration of a TACo adapter.

    Fields:
        domain: Canonical domain name or alias
        ritual_id: Positive ritual identifier
        client: Chain client handle used to reach the coordinator chain
        signer: Signing identity used for encryption and auth
        rpc_url: Optional RPC endpoint override
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    domain: str
    ritual_id: int
    client: Any
    signer: Any
    rpc_url: Optional[str] = None

    @field_validator("domain", mode="before")
    @classmethod
    def _check_domain(cls, value):
        try:
            return normalize_domain(value)
        except ConfigurationError as e:
            raise ValueError(e.message)

    @field_validator("ritual_id", mode="before")
    @classmethod
    def _check_ritual_id(cls, value):
        if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
            raise ValueError("ritual_id must be a positive integer")
        return value

    @field_validator("client", "signer")
    @classmethod
    def _check_required(cls, value, info):
        if value is None:
            raise ValueError(f"{info.field_name} is required")
        return value

    @classmethod
    def build(cls, **fields: Any) -> "TacoConfig":
        """Validate fields, converting pydantic errors to ConfigurationError."""
        try:
            return cls(**fields)
        except ValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(part) for part in err['loc']) or 'config'}: {err['msg']}"
                for err in e.errors()
            )
            raise ConfigurationError(f"Invalid TACo configuration: {problems}")

    def public_dict(self) -> Dict[str, Any]:
        """Config without client or signer handles."""
        return {
            "domain": self.domain,
            "ritual_id": self.ritual_id,
            "chain_id": TACO_DOMAINS[self.domain]["chain_id"],
            "rpc_url": self.rpc_url,
        }
