"""
Tests for the command line interface.
"""

import argparse
from unittest.mock import AsyncMock

import pytest

from fileverse_agents import cli_handlers
from fileverse_agents.agent import FileverseAgent
from fileverse_agents.cli import main
from fileverse_agents.cli_parser import parse_arguments
from fileverse_agents.config import get_config_value, set_config_value
from fileverse_agents.data_access import TacoProvider
from fileverse_agents.errors import ConfigurationError
from fileverse_agents.ipfs import IPFSStorageProvider

from tests.conftest import TEST_PRIVATE_KEY


@pytest.fixture
def markdown_file(tmp_path):
    path = tmp_path / "notes.md"
    path.write_text("# Notes\n\nHello World")
    return str(path)


class TestParser:
    def test_create_with_condition(self):
        args = parse_arguments(
            ["--namespace", "reports", "create", "notes.md", "--condition", "{}"]
        )

        assert args.command == "create"
        assert args.namespace == "reports"
        assert args.file_path == "notes.md"
        assert args.condition == "{}"

    def test_setup_namespace(self):
        args = parse_arguments(["setup", "reports"])

        assert args.command == "setup"
        assert args.namespace == "reports"

    def test_update(self):
        args = parse_arguments(["-v", "update", "3", "notes.md"])

        assert args.verbose is True
        assert (args.file_id, args.file_path, args.condition) == ("3", "notes.md", None)

    def test_config_set(self):
        args = parse_arguments(["config", "set", "taco", "ritual_id", "6"])

        assert (args.config_action, args.section, args.key, args.value) == (
            "set",
            "taco",
            "ritual_id",
            "6",
        )


class TestAgentFactory:
    def test_requires_private_key(self):
        with pytest.raises(ConfigurationError):
            cli_handlers.create_agent(argparse.Namespace(chain=None, password=None))

    def test_builds_agent_from_config(self):
        set_config_value("chain", "private_key", TEST_PRIVATE_KEY)
        set_config_value("storage", "provider", "ipfs")

        agent = cli_handlers.create_agent(argparse.Namespace(chain="gnosis", password=None))

        assert agent.chain == "gnosis"
        assert isinstance(agent.storage_provider, IPFSStorageProvider)
        assert agent.access_provider is None

    def test_taco_provider_when_configured(self):
        set_config_value("chain", "private_key", TEST_PRIVATE_KEY)
        set_config_value("storage", "provider", "ipfs")
        set_config_value("taco", "ritual_id", 6)
        set_config_value("taco", "backend", "tests.conftest:FakeThresholdBackend")

        agent = cli_handlers.create_agent(argparse.Namespace(chain=None, password=None))

        assert agent.chain == "sepolia"
        assert isinstance(agent.access_provider, TacoProvider)
        assert agent.access_provider.get_metadata_config()["ritualId"] == 6

    def test_unknown_storage_provider(self):
        set_config_value("storage", "provider", "s3")

        with pytest.raises(ConfigurationError):
            cli_handlers.create_storage_provider()

    def test_namespace_from_config(self):
        set_config_value("credentials", "namespace", "reports")

        assert cli_handlers.resolve_namespace(argparse.Namespace(namespace=None)) == "reports"

    def test_namespace_required(self):
        with pytest.raises(ConfigurationError):
            cli_handlers.resolve_namespace(argparse.Namespace(namespace=None))


@pytest.mark.asyncio
class TestFileCommands:
    async def test_create_get_cat_delete(self, public_agent, chain, markdown_file):
        assert await cli_handlers.handle_create(public_agent, "test", markdown_file) == 0
        assert len(chain.calls_to("addFile")) == 1

        assert await cli_handlers.handle_get(public_agent, "test", "0") == 0
        assert await cli_handlers.handle_cat(public_agent, "test", "0") == 0
        assert await cli_handlers.handle_delete(public_agent, "test", "0") == 0

        assert (await public_agent.get_file(0)).deleted is True

    async def test_create_encrypted(self, agent, chain, markdown_file):
        condition = '{"conditionType": "rpc", "method": "eth_getBalance", "parameters": [":userAddress", "latest"], "returnValueTest": {"comparator": ">=", "value": 0}}'

        assert await cli_handlers.handle_create(agent, "test", markdown_file, condition) == 0

        assert (await agent.get_file(0)).encrypted is True
        assert await cli_handlers.handle_cat(agent, "test", "0") == 0

    async def test_update(self, public_agent, markdown_file, tmp_path):
        await public_agent.create("v1")
        new_version = tmp_path / "v2.md"
        new_version.write_text("v2")

        assert await cli_handlers.handle_update(public_agent, "test", "0", str(new_version)) == 0

        assert (await public_agent.get_file_content(0)).content == "v2"

    async def test_invalid_condition_json(self, public_agent, chain, markdown_file):
        assert await cli_handlers.handle_create(public_agent, "test", markdown_file, "{nope") == 1
        assert chain.calls_to("addFile") == []

    async def test_missing_file(self, public_agent, tmp_path):
        missing = str(tmp_path / "missing.md")
        assert await cli_handlers.handle_create(public_agent, "test", missing) == 1

    async def test_cat_deleted_file(self, public_agent):
        await public_agent.create("Hello")
        await public_agent.delete(0)

        assert await cli_handlers.handle_cat(public_agent, "test", "0") == 1


class TestConfigCommands:
    def test_set_converts_values(self):
        assert cli_handlers.handle_config_set("taco", "ritual_id", "6") == 0
        assert cli_handlers.handle_config_set("logging", "verbose", "true") == 0

        assert get_config_value("taco", "ritual_id") == 6
        assert get_config_value("logging", "verbose") is True

    def test_get_masks_private_key(self, capsys):
        set_config_value("chain", "private_key", TEST_PRIVATE_KEY)

        assert cli_handlers.handle_config_get("chain", "private_key") == 0

        assert TEST_PRIVATE_KEY not in capsys.readouterr().out

    def test_list_masks_private_key(self, capsys):
        set_config_value("chain", "private_key", TEST_PRIVATE_KEY)

        assert cli_handlers.handle_config_list() == 0

        assert TEST_PRIVATE_KEY not in capsys.readouterr().out

    def test_reset(self):
        set_config_value("chain", "name", "gnosis")

        assert cli_handlers.handle_config_reset() == 0
        assert get_config_value("chain", "name") == "sepolia"

    def test_main_config_set(self):
        assert main(["config", "set", "storage", "provider", "ipfs"]) == 0
        assert get_config_value("storage", "provider") == "ipfs"

    def test_main_without_command(self):
        assert main([]) == 1

    def test_main_reports_configuration_errors(self):
        assert main(["--namespace", "reports", "get", "0"]) == 1

    def test_main_closes_agent_after_command(
        self, monkeypatch, account, storage, chain, credential_store
    ):
        agent = FileverseAgent(
            "sepolia", account, storage, chain_client=chain, credential_store=credential_store
        )
        storage.close = AsyncMock()
        monkeypatch.setattr(cli_handlers, "create_agent", lambda args: agent)

        assert main(["--namespace", "reports", "get", "0"]) == 1

        storage.close.assert_awaited_once()
        assert len(chain.calls_to("mint")) == 1
