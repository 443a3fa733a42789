"""External command exports."""

from .command_runner import CommandExecutionError, CommandRunner, run_checked_command

__all__ = ["CommandExecutionError", "CommandRunner", "run_checked_command"]
