"""
nob CLI entry point.

Usage:
    nob                     Start the terminal
    nob on | off            Start in AI mode / manual mode
    nob help                Show help
    nob version             Show version
    nob set-api-key         Configure a personal Workers AI key (alias: config)
    nob show-config         Show current configuration (alias: config-show)
    nob remove-api-key      Remove the personal key (alias: config-remove)
    nob config show         Show merged settings
    nob config init         Write a default settings file
"""

import argparse
import getpass
import sys
from pathlib import Path
from typing import Callable, Optional

import yaml

from nob import __version__
from nob.config.loader import create_default_config, get_default_config_path, load_config
from nob.config.schemas import Mode, NobConfig
from nob.config.store import Credentials, CredentialStore
from nob.shell.help import CLI_DESCRIPTION, CLI_EPILOG, format_config_summary
from nob.telemetry.logger import get_logger, setup_logging


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="nob",
        description=CLI_DESCRIPTION,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=CLI_EPILOG,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    parser.add_argument(
        "--config",
        type=Path,
        metavar="PATH",
        help="Path to custom configuration file",
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Override log level",
    )

    parser.add_argument("command", nargs="?", help="Command to run (see below)")
    parser.add_argument("subcommand", nargs="?", help=argparse.SUPPRESS)

    return parser


def _configure_logging(config: NobConfig, log_level: Optional[str] = None) -> None:
    if log_level:
        config.log_level = log_level
    try:
        setup_logging(
            config.log_level,
            config.telemetry.log_file,
            json_format=config.telemetry.json_format,
        )
    except OSError:
        setup_logging(config.log_level, json_format=config.telemetry.json_format)


def cmd_help(parser: argparse.ArgumentParser) -> int:
    """Show CLI help."""
    parser.print_help()
    return 0


def cmd_version() -> int:
    """Show the version."""
    print(f"nob v{__version__}")
    return 0


def cmd_set_api_key(
    store: Optional[CredentialStore] = None,
    input_func: Callable[[str], str] = input,
    secret_func: Callable[[str], str] = getpass.getpass,
) -> int:
    """Prompt for and save personal Workers AI credentials."""
    store = store or CredentialStore()

    print("\nConfigure Your Cloudflare Workers AI API Key\n")
    print("This lets nob use your own API key instead of the shared backend.")
    print("Get your credentials from: https://dash.cloudflare.com")
    print("  - Account ID: Workers & Pages > Overview (right sidebar)")
    print("  - API Token: My Profile > API Tokens > Create Token\n")

    try:
        account_id = ""
        while not account_id:
            account_id = input_func("Cloudflare Account ID: ").strip()
            if not account_id:
                print("Account ID is required")

        api_token = ""
        while not api_token:
            api_token = secret_func("Cloudflare API Token: ").strip()
            if not api_token:
                print("API Token is required")
    except (EOFError, KeyboardInterrupt):
        print("\nCancelled.")
        return 1

    try:
        store.save(Credentials(cloudflare_account_id=account_id, cloudflare_api_token=api_token))
    except OSError as e:
        print(f"Failed to save API key: {e}", file=sys.stderr)
        return 1

    print("\n✓ API key configured successfully!")
    print(f"  Config saved to: {store.path}\n")
    return 0


def cmd_show_config(config_path: Optional[Path], store: Optional[CredentialStore] = None) -> int:
    """Show the active backend and where credentials are stored."""
    store = store or CredentialStore()
    try:
        config = load_config(config_path, credential_store=store)
    except Exception as e:
        print(f"Error loading configuration: {e}", file=sys.stderr)
        return 1

    print(format_config_summary(config, store.path, use_color=sys.stdout.isatty()))
    return 0


def cmd_remove_api_key(
    store: Optional[CredentialStore] = None,
    input_func: Callable[[str], str] = input,
) -> int:
    """Remove personal credentials after confirmation."""
    store = store or CredentialStore()

    if not store.load().to_dict():
        print("\nNo API key configured to remove.\n")
        return 0

    try:
        answer = input_func("Are you sure you want to remove your API key? [y/N] ")
    except (EOFError, KeyboardInterrupt):
        answer = ""

    if answer.strip().lower() not in ("y", "yes"):
        print("\nCancelled.\n")
        return 0

    try:
        store.clear_credentials()
    except OSError as e:
        print(f"Failed to remove API key: {e}", file=sys.stderr)
        return 1

    print("\n✓ API key removed. You will now use the shared backend.\n")
    return 0


def cmd_config_show(config_path: Optional[Path]) -> int:
    """Show the merged configuration (secrets masked)."""
    try:
        config = load_config(config_path)
    except Exception as e:
        print(f"Error loading configuration: {e}", file=sys.stderr)
        return 1

    data = config.model_dump(mode="json")
    for key in ("cloudflare_account_id", "cloudflare_api_token"):
        if data["llm"].get(key):
            data["llm"][key] = "********"

    print("Current nob Configuration:")
    print("=" * 50)
    print(yaml.dump(data, default_flow_style=False, sort_keys=False))
    return 0


def cmd_config_init(config_path: Optional[Path]) -> int:
    """Initialize default configuration file."""
    target_path = config_path or get_default_config_path()
    try:
        create_default_config(target_path)
        print(f"Created default configuration at: {target_path}")
        return 0
    except Exception as e:
        print(f"Error creating configuration: {e}", file=sys.stderr)
        return 1


def cmd_interactive_shell(
    config_path: Optional[Path],
    log_level: Optional[str],
    mode: Optional[Mode] = None,
) -> int:
    """Start the interactive terminal."""
    from nob.agent.factory import create_controller
    from nob.shell.approval import TerminalAgentUI
    from nob.shell.session import SessionContext
    from nob.shell.wrapper import ShellWrapper

    try:
        config = load_config(config_path)
        _configure_logging(config, log_level)
        logger = get_logger(__name__)
        logger.info("Starting nob", version=__version__)

        session = SessionContext(mode=mode or config.initial_mode())
        shell = ShellWrapper(config, session=session, version=__version__)

        if config.llm.is_configured:
            try:
                controller = create_controller(
                    config,
                    TerminalAgentUI(use_color=config.shell.use_color),
                    runner=shell.runner,
                    on_cwd_change=session.apply_cwd,
                )
                shell.set_controller(controller)
                logger.info(
                    "Agent configured",
                    provider=controller.service.provider,
                    model=controller.service.model,
                )
            except ValueError as e:
                logger.warning("Failed to configure agent", error=str(e))

        shell.run()
        return 0

    except KeyboardInterrupt:
        print("\nGoodbye!")
        return 0
    except Exception as e:
        print(f"Error starting nob: {e}", file=sys.stderr)
        return 1


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for the CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)
    command = args.command

    if command in ("exit", None):
        return cmd_interactive_shell(args.config, args.log_level)

    if command in ("on", "off"):
        return cmd_interactive_shell(args.config, args.log_level, Mode(command))

    if command in ("help", "--help", "-h"):
        return cmd_help(parser)

    if command in ("version", "-v"):
        return cmd_version()

    if command == "set-api-key" or (command == "config" and args.subcommand is None):
        return cmd_set_api_key()

    if command in ("show-config", "config-show"):
        return cmd_show_config(args.config)

    if command in ("remove-api-key", "config-remove"):
        return cmd_remove_api_key()

    if command == "config":
        if args.subcommand == "show":
            return cmd_config_show(args.config)
        if args.subcommand == "init":
            return cmd_config_init(args.config)
        print("Usage: nob config {show,init}", file=sys.stderr)
        return 1

    print(f"Unknown command: {command}\nRun 'nob help' for usage information.")
    return 1


if __name__ == "__main__":
    sys.exit(main())
