"""
Command handlers for the Fileverse agent CLI.

Each handler returns a process exit code.
"""

import json
from typing import Any, Dict, Optional, Union

from eth_account import Account

from fileverse_agents.agent import FileverseAgent
from fileverse_agents.cli_rich import (
    error,
    info,
    log,
    print_panel,
    print_record,
    success,
    warning,
)
from fileverse_agents.config import (
    get_all_config,
    get_config_value,
    get_private_key,
    reset_config,
    set_config_value,
)
from fileverse_agents.data_access import TacoProvider
from fileverse_agents.errors import ConfigurationError, FileverseError
from fileverse_agents.ipfs import IPFSStorageProvider
from fileverse_agents.pinata import PinataStorageProvider
from fileverse_agents.storage import StorageProvider
from fileverse_agents.utils import format_size


def create_storage_provider() -> StorageProvider:
    """Build the storage provider selected by ``storage.provider``."""
    provider = get_config_value("storage", "provider", "pinata")
    if provider == "pinata":
        return PinataStorageProvider()
    if provider == "ipfs":
        return IPFSStorageProvider()
    raise ConfigurationError(f"Unknown storage provider: {provider} (options: pinata, ipfs)")


def create_agent(args: Any) -> FileverseAgent:
    """Create a FileverseAgent from command line arguments and the config file."""
    chain = getattr(args, "chain", None) or get_config_value("chain", "name", "sepolia")

    private_key = get_private_key(password=getattr(args, "password", None))
    if not private_key:
        raise ConfigurationError(
            "No private key configured. Set PRIVATE_KEY or run "
            "'fileverse-agent config set chain private_key <key>'"
        )
    account = Account.from_key(private_key)

    access_provider = None
    if get_config_value("taco", "ritual_id") and get_config_value("taco", "backend"):
        access_provider = TacoProvider.from_config(signer=account)

    return FileverseAgent(
        chain,
        account,
        create_storage_provider(),
        access_provider=access_provider,
    )


def resolve_namespace(args: Any) -> str:
    namespace = getattr(args, "namespace", None) or get_config_value(
        "credentials", "namespace"
    )
    if not namespace:
        raise ConfigurationError(
            "No namespace given. Pass --namespace or set credentials.namespace"
        )
    return namespace


def read_content(file_path: str) -> Union[str, bytes]:
    """Read a local file as text, falling back to bytes for binary files."""
    with open(file_path, "rb") as f:
        data = f.read()
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError:
        return data


def parse_condition(condition: Optional[str]) -> Optional[Dict[str, Any]]:
    if condition is None:
        return None
    try:
        return {"access_condition": json.loads(condition)}
    except ValueError as e:
        raise ConfigurationError(f"--condition is not valid JSON: {e}")


def _transaction_record(result) -> Dict[str, Any]:
    record = {
        "File ID": result.file_id,
        "Transaction": result.hash,
        "Portal": result.portal_address,
        "Encrypted": result.encrypted,
    }
    if result.access_condition is not None:
        record["Condition"] = json.dumps(result.access_condition)
    return record


async def handle_setup(agent: FileverseAgent, namespace: str) -> int:
    """Handle the setup command"""
    try:
        portal_address = await agent.setup_storage(namespace)
        success(f"Portal for [bold]{agent.namespace}[/bold]: [cyan]{portal_address}[/cyan]")
        return 0
    except FileverseError as e:
        error(f"Setup failed: {e}")
        return 1


async def handle_create(
    agent: FileverseAgent, namespace: str, file_path: str, condition: Optional[str] = None
) -> int:
    """Handle the create command"""
    try:
        content = read_content(file_path)
        options = parse_condition(condition)
        await agent.setup_storage(namespace)

        info(f"Creating file from {file_path} ({format_size(len(content))})")
        result = await agent.create(content, options)

        print_record("File created", _transaction_record(result))
        return 0
    except OSError as e:
        error(f"Could not read {file_path}: {e}")
        return 1
    except FileverseError as e:
        error(f"Create failed: {e}")
        return 1


async def handle_get(agent: FileverseAgent, namespace: str, file_id: str) -> int:
    """Handle the get command"""
    try:
        await agent.setup_storage(namespace)
        file_info = await agent.get_file(file_id)

        if file_info.deleted:
            warning(f"File {file_id} has been deleted")

        print_record(
            f"File {file_id}",
            {
                "Metadata": file_info.metadata_ipfs_hash,
                "Content": file_info.content_ipfs_hash,
                "Encrypted": file_info.encrypted,
                "Deleted": file_info.deleted,
                "Name": file_info.metadata.get("name", ""),
            },
        )
        return 0
    except FileverseError as e:
        error(f"Get failed: {e}")
        return 1


async def handle_cat(agent: FileverseAgent, namespace: str, file_id: str) -> int:
    """Handle the cat command"""
    try:
        await agent.setup_storage(namespace)
        file_content = await agent.get_file_content(file_id)

        if isinstance(file_content.content, bytes):
            warning(f"Binary content ({format_size(len(file_content.content))}) not shown")
            return 0

        title = f"File {file_id}" + (" (decrypted)" if file_content.decrypted else "")
        print_panel(file_content.content, title=title, markup=False)
        return 0
    except FileverseError as e:
        error(f"Cat failed: {e}")
        return 1


async def handle_update(
    agent: FileverseAgent,
    namespace: str,
    file_id: str,
    file_path: str,
    condition: Optional[str] = None,
) -> int:
    """Handle the update command"""
    try:
        content = read_content(file_path)
        options = parse_condition(condition)
        await agent.setup_storage(namespace)

        result = await agent.update(file_id, content, options)

        print_record("File updated", _transaction_record(result))
        return 0
    except OSError as e:
        error(f"Could not read {file_path}: {e}")
        return 1
    except FileverseError as e:
        error(f"Update failed: {e}")
        return 1


async def handle_delete(agent: FileverseAgent, namespace: str, file_id: str) -> int:
    """Handle the delete command"""
    try:
        await agent.setup_storage(namespace)
        result = await agent.delete(file_id)
        success(f"File {result.file_id} deleted in [cyan]{result.hash}[/cyan]")
        return 0
    except FileverseError as e:
        error(f"Delete failed: {e}")
        return 1


def handle_config_get(section: str, key: str) -> int:
    """Handle the config get command"""
    value = get_config_value(section, key)
    if section == "chain" and key == "private_key" and value:
        value = "********"
    log(f"[bold cyan]{section}[/bold cyan].[bold green]{key}[/bold green] = [bold]{value}[/bold]")
    return 0


def handle_config_set(section: str, key: str, value: str) -> int:
    """Handle the config set command"""
    # Convert "true"/"false" and integers
    if value.lower() == "true":
        value = True
    elif value.lower() == "false":
        value = False
    elif value.isdigit():
        value = int(value)

    if not set_config_value(section, key, value):
        error(f"Could not save {section}.{key}")
        return 1

    shown = "********" if key == "private_key" else value
    success(f"Set [bold cyan]{section}[/bold cyan].[bold green]{key}[/bold green] = [bold]{shown}[/bold]")
    return 0


def handle_config_list() -> int:
    """Handle the config list command"""
    config = get_all_config()

    config_lines = ["Current configuration:"]
    for section, values in config.items():
        config_lines.append(f"\n[bold cyan]{section}[/bold cyan]")
        for key, value in values.items():
            if key == "private_key" and value:
                value = "********"
            config_lines.append(f"  [bold green]{key}[/bold green] = [bold]{value}[/bold]")

    print_panel("\n".join(config_lines), title="Configuration")
    return 0


def handle_config_reset() -> int:
    """Handle the config reset command"""
    if not reset_config():
        error("Could not reset configuration")
        return 1
    success("Configuration reset to default values")
    return 0
