"""
Command Line Interface argument parser for the Fileverse agent.
"""

import argparse


def create_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="fileverse-agent",
        description="Fileverse Agents SDK Command Line Interface",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
examples:
  # Provision a portal for a namespace
  fileverse-agent setup my-agent

  # Publish a markdown file
  fileverse-agent --namespace my-agent create notes.md

  # Publish a file only holders of 1 ETH can read
  fileverse-agent --namespace my-agent create secret.md \\
      --condition '{"type": "rpc", "method": "eth_getBalance", "parameters": [":userAddress", "latest"], "returnValueTest": {"comparator": ">=", "value": 1000000000000000000}}'

  # Print a file
  fileverse-agent --namespace my-agent cat 3
""",
    )

    parser.add_argument("--chain", help="Chain name (gnosis or sepolia); default from config")
    parser.add_argument("--namespace", help="Portal namespace; default from config")
    parser.add_argument("--password", help="Password for an encrypted private key")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    setup_parser = subparsers.add_parser("setup", help="Provision or load the portal")
    setup_parser.add_argument("namespace", help="Namespace to provision")

    add_file_commands(subparsers)
    add_config_commands(subparsers)

    return parser


def add_file_commands(subparsers):
    """Add file lifecycle commands to the parser."""
    create_cmd = subparsers.add_parser("create", help="Create a file from a local path")
    create_cmd.add_argument("file_path", help="Path of the file to publish")
    create_cmd.add_argument(
        "--condition", help="Access condition as JSON; encrypts the file when given"
    )

    get_parser = subparsers.add_parser("get", help="Show a file's references and metadata")
    get_parser.add_argument("file_id", help="File ID")

    cat_parser = subparsers.add_parser("cat", help="Print a file's content")
    cat_parser.add_argument("file_id", help="File ID")

    update_parser = subparsers.add_parser("update", help="Replace a file's content")
    update_parser.add_argument("file_id", help="File ID")
    update_parser.add_argument("file_path", help="Path of the new content")
    update_parser.add_argument(
        "--condition",
        help="Access condition as JSON; without it the new version is public",
    )

    delete_parser = subparsers.add_parser("delete", help="Tombstone a file")
    delete_parser.add_argument("file_id", help="File ID")


def add_config_commands(subparsers):
    """Add configuration commands to the parser."""
    config_parser = subparsers.add_parser("config", help="Manage SDK configuration")
    config_subparsers = config_parser.add_subparsers(
        dest="config_action", help="Configuration action"
    )

    get_parser = config_subparsers.add_parser("get", help="Get a configuration value")
    get_parser.add_argument(
        "section", help="Configuration section (chain, storage, taco, credentials, logging)"
    )
    get_parser.add_argument("key", help="Configuration key")

    set_parser = config_subparsers.add_parser("set", help="Set a configuration value")
    set_parser.add_argument(
        "section", help="Configuration section (chain, storage, taco, credentials, logging)"
    )
    set_parser.add_argument("key", help="Configuration key")
    set_parser.add_argument("value", help="Configuration value")

    config_subparsers.add_parser("list", help="List all configuration values")
    config_subparsers.add_parser("reset", help="Reset configuration to default values")
    config_subparsers.add_parser("import-env", help="Import configuration from environment")


def parse_arguments(argv=None) -> argparse.Namespace:
    """Parse command line arguments."""
    return create_parser().parse_args(argv)
