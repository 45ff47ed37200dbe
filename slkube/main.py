#!/usr/bin/env python3
"""
slkube - Main Entry Point

This is the thin orchestration layer that:
1. Loads configuration
2. Builds the configured executor
3. Runs one starlake command and exits with its exit code

Usage:
    sl-dispatch <command> [--options k=v,k=v] [args...]

All business logic is in the modules, following black box principles.
"""

import logging
import os
import sys
from typing import Optional, Sequence

import click

from slkube.config.provider import ConfigProvider, EnvConfigProvider
from slkube.errors import DispatchError
from slkube.logging_config import configure_logging
from slkube.modules.executor import CommandExecutor, ExecutorFactory
from slkube.modules.models import ExecutionOutcome, OutcomeStatus
from slkube.modules.options import parse_invocation

logger = logging.getLogger("slkube.main")


def resolve_exit_code(outcome: ExecutionOutcome, strict: bool = False) -> int:
    """
    Process exit code for an outcome.

    In strict mode an assumed success (Job cleaned up before any exit code
    was seen) is reported as a failure instead of 0.
    """
    if outcome.status == OutcomeStatus.ASSUMED_SUCCESS and strict:
        logger.error("Refusing unverified success (SL_DISPATCH_STRICT=true)")
        return 1
    return outcome.exit_code


def run(
    argv: Sequence[str],
    config_provider: Optional[ConfigProvider] = None,
    executor: Optional[CommandExecutor] = None,
) -> int:
    """
    Dispatch one starlake command line.

    Args:
        argv: Command followed by its arguments
        config_provider: Configuration source (environment by default)
        executor: Pre-built executor, mainly for tests

    Returns:
        Exit code to terminate with
    """
    try:
        invocation = parse_invocation(argv)
        if config_provider is None:
            config_provider = EnvConfigProvider()
        dispatch_config = config_provider.get_dispatch_config()
        if executor is None:
            executor = ExecutorFactory.build(config_provider)

        outcome = executor.execute(invocation)
        return resolve_exit_code(outcome, strict=dispatch_config.strict_completion)

    except DispatchError as e:
        logger.error(f"ERROR: {e}")
        return e.exit_code
    except Exception as e:
        logger.exception(f"Fatal error: {e}")
        return 1


@click.command(
    context_settings={
        "ignore_unknown_options": True,
        "allow_interspersed_args": False,
        "help_option_names": [],
    }
)
@click.argument("argv", nargs=-1, type=click.UNPROCESSED)
def main(argv):
    """Run a starlake command locally or as a Kubernetes Job."""
    configure_logging(os.environ.get("LOG_LEVEL", "INFO"))
    sys.exit(run(list(argv)))


if __name__ == "__main__":
    main()
