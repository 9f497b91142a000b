#!/usr/bin/env python3
"""
Command Line Interface for the Fileverse Agents SDK.

Provisions a portal and creates, reads, updates and deletes files on it
using the signing key, storage and TACo settings in ~/.fileverse/config.json.
"""

import asyncio
import inspect
import sys
from typing import Callable

from fileverse_agents import cli_handlers
from fileverse_agents.cli_parser import create_parser, parse_arguments
from fileverse_agents.cli_rich import error, success
from fileverse_agents.config import configure_logging, initialize_from_env
from fileverse_agents.errors import FileverseError


def run_async_handler(handler_func: Callable, *args, **kwargs) -> int:
    if inspect.iscoroutinefunction(handler_func):
        return asyncio.run(handler_func(*args, **kwargs))
    return handler_func(*args, **kwargs)


async def run_agent_handler(handler_func: Callable, agent, *args) -> int:
    """Run a file command handler, closing the agent's network clients afterwards."""
    try:
        return await handler_func(agent, *args)
    finally:
        await agent.close()


def handle_config_command(args) -> int:
    if args.config_action == "get":
        return cli_handlers.handle_config_get(args.section, args.key)
    elif args.config_action == "set":
        return cli_handlers.handle_config_set(args.section, args.key, args.value)
    elif args.config_action == "list":
        return cli_handlers.handle_config_list()
    elif args.config_action == "reset":
        return cli_handlers.handle_config_reset()
    elif args.config_action == "import-env":
        success("Imported configuration from environment variables")
        return 0

    error("Missing config action: get, set, list, reset or import-env")
    return 1


def main(argv=None) -> int:
    """Main CLI entry point for the fileverse-agent command."""
    initialize_from_env()
    args = parse_arguments(argv)
    configure_logging("DEBUG" if args.verbose else None)

    if not args.command:
        create_parser().print_help()
        return 1

    if args.command == "config":
        return handle_config_command(args)

    try:
        namespace = cli_handlers.resolve_namespace(args)
        agent = cli_handlers.create_agent(args)
    except FileverseError as e:
        error(str(e))
        return 1

    if args.command == "setup":
        return run_async_handler(run_agent_handler, cli_handlers.handle_setup, agent, namespace)

    elif args.command == "create":
        return run_async_handler(
            run_agent_handler,
            cli_handlers.handle_create,
            agent,
            namespace,
            args.file_path,
            args.condition,
        )

    elif args.command == "get":
        return run_async_handler(
            run_agent_handler, cli_handlers.handle_get, agent, namespace, args.file_id
        )

    elif args.command == "cat":
        return run_async_handler(
            run_agent_handler, cli_handlers.handle_cat, agent, namespace, args.file_id
        )

    elif args.command == "update":
        return run_async_handler(
            run_agent_handler,
            cli_handlers.handle_update,
            agent,
            namespace,
            args.file_id,
            args.file_path,
            args.condition,
        )

    elif args.command == "delete":
        return run_async_handler(
            run_agent_handler, cli_handlers.handle_delete, agent, namespace, args.file_id
        )

    error(f"Unknown command: {args.command}")
    return 1


if __name__ == "__main__":
    sys.exit(main())
