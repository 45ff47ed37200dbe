"""Executor interfaces following Black Box Design principles."""
from typing import Protocol

from slkube.modules.models import ExecutionOutcome, Invocation


class CommandExecutor(Protocol):
    """Protocol for starlake execution strategies - allows swappable implementations."""

    name: str

    def execute(self, invocation: Invocation) -> ExecutionOutcome:
        """
        Run a starlake invocation to completion.

        Args:
            invocation: Parsed command line

        Returns:
            Terminal ExecutionOutcome; remote failures are outcomes, not exceptions
        """
        ...
