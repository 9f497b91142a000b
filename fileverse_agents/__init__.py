"""
Fileverse Agents SDK - files on Fileverse portals, optionally encrypted with TACo
"""

from fileverse_agents.agent import FileverseAgent
from fileverse_agents.chain import ChainClient, Web3ChainClient
from fileverse_agents.conditions import (
    balance_condition,
    compound_condition,
    contract_condition,
    create_condition,
    rpc_condition,
    time_condition,
)
from fileverse_agents.config import (
    configure_logging,
    get_all_config,
    get_config_value,
    initialize_from_env,
    load_config,
    reset_config,
    save_config,
    set_config_value,
)
from fileverse_agents.constants import FileType
from fileverse_agents.credentials import CredentialStore
from fileverse_agents.data_access import DataAccessProvider, TacoProvider
from fileverse_agents.errors import (
    AccessDeniedError,
    ChainError,
    ConfigurationError,
    DecryptionError,
    EncryptionError,
    FileverseError,
    NotSetupError,
    ProviderRequiredError,
    RegistrationError,
    StorageError,
    StorageTimeoutError,
    UnpinError,
    ValidationError,
)
from fileverse_agents.ipfs import IPFSStorageProvider
from fileverse_agents.models import FileContent, FileInfo, FileTransaction
from fileverse_agents.pinata import PinataStorageProvider
from fileverse_agents.storage import StorageProvider
from fileverse_agents.taco import BackendModules, TacoClient

__version__ = "0.1.0"
__all__ = [
    "FileverseAgent",
    "ChainClient",
    "Web3ChainClient",
    "StorageProvider",
    "PinataStorageProvider",
    "IPFSStorageProvider",
    "DataAccessProvider",
    "TacoProvider",
    "TacoClient",
    "BackendModules",
    "CredentialStore",
    "FileType",
    "FileTransaction",
    "FileInfo",
    "FileContent",
    "rpc_condition",
    "contract_condition",
    "time_condition",
    "balance_condition",
    "compound_condition",
    "create_condition",
    "get_config_value",
    "set_config_value",
    "load_config",
    "save_config",
    "initialize_from_env",
    "get_all_config",
    "reset_config",
    "configure_logging",
    "FileverseError",
    "ConfigurationError",
    "ProviderRequiredError",
    "ValidationError",
    "EncryptionError",
    "DecryptionError",
    "AccessDeniedError",
    "RegistrationError",
    "NotSetupError",
    "ChainError",
    "StorageError",
    "UnpinError",
    "StorageTimeoutError",
]
