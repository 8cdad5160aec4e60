#!/usr/bin/env python3
"""
Taskory - main entry point

This module provides the Command base class and manages the command lifecycle.
Subcommands register themselves with main() and run inside a
init() / run() / cleanup() cycle.
"""
import argparse
import sys
import logging
from abc import ABC, abstractmethod
from typing import Optional, Dict

logger = logging.getLogger(__name__)


class Command(ABC):
    """
    Base class for all commands.

    Commands follow a lifecycle:
    1. init() - Initialize resources, parse arguments
    2. run() - Execute the command
    3. cleanup() - Clean up resources

    Commands can declare arguments using add_arguments().
    """

    def __init__(self, args: Optional[argparse.Namespace] = None):
        self.args = args
        self._initialized = False
        self._cleaned_up = False

    @classmethod
    def get_name(cls) -> str:
        """Get the command name (used in CLI)."""
        # "ServerCommand" -> "server"
        return cls.__name__.replace("Command", "").lower()

    @classmethod
    def get_description(cls) -> str:
        """Get command description for help text."""
        return cls.__doc__ or f"{cls.__name__} command"

    @classmethod
    def add_arguments(cls, parser: argparse.ArgumentParser) -> None:
        """Add command-specific arguments to the parser."""

    def init(self) -> None:
        """Called before run(). Override to set up resources."""
        if self._initialized:
            return
        self._initialized = True
        logger.debug(f"Initialized {self.__class__.__name__}")

    @abstractmethod
    def run(self) -> int:
        """
        Execute the command.

        Returns:
            Exit code (0 for success, non-zero for failure)
        """

    def cleanup(self) -> None:
        """Called after run(), even if run() raises."""
        if self._cleaned_up:
            return
        self._cleaned_up = True
        logger.debug(f"Cleaned up {self.__class__.__name__}")

    def __enter__(self):
        self.init()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.cleanup()
        return False


_COMMANDS: Dict[str, type] = {}


def register_command(command_class: type) -> None:
    """Register a command class."""
    _COMMANDS[command_class.get_name()] = command_class


def get_command(name: str) -> Optional[type]:
    """Get a registered command class by name."""
    return _COMMANDS.get(name)


def list_commands() -> Dict[str, type]:
    """List all registered commands."""
    return _COMMANDS.copy()


def main(argv=None):
    """Main entry point for the taskory package."""
    from taskory.logging_setup import setup_logging
    setup_logging()

    parser = argparse.ArgumentParser(
        description="Taskory - multi-tenant project and task tracking service",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    subparsers = parser.add_subparsers(dest="command", help="Command to run", metavar="COMMAND")

    # Imported here to avoid circular imports
    from taskory.commands.server import ServerCommand
    from taskory.commands.initialize import InitializeCommand
    from taskory.commands.create_user import CreateUserCommand
    for command_class in (ServerCommand, InitializeCommand, CreateUserCommand):
        register_command(command_class)

    for name, cmd_class in _COMMANDS.items():
        subparser = subparsers.add_parser(
            name,
            help=cmd_class.get_description(),
            description=cmd_class.get_description()
        )
        cmd_class.add_arguments(subparser)

    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
        return 1

    cmd_class = get_command(args.command)
    if not cmd_class:
        print(f"Unknown command: {args.command}", file=sys.stderr)
        return 1

    try:
        with cmd_class(args) as cmd:
            return cmd.run()
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as e:
        logger.exception(f"Command failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
