"""Run starlake as a direct subprocess (Docker Compose deployments)."""

import logging
import shutil
import subprocess
from typing import Mapping

from slkube.errors import ConfigurationError
from slkube.modules.models import ExecutionOutcome, Invocation, outcome_from_exit_code
from slkube.modules.options import build_arguments, split_options

logger = logging.getLogger("slkube.executor.local")


class LocalExecutor:
    """Executor that runs the starlake binary in the current container."""

    name = "local"

    def __init__(self, command: str, environ: Mapping[str, str], env_prefix: str = "SL_"):
        """
        Args:
            command: Path (or PATH name) of the local starlake launcher
            environ: Base environment for the child process
            env_prefix: Prefix of --options keys exported as environment
        """
        self.command = command
        self.environ = environ
        self.env_prefix = env_prefix

    def execute(self, invocation: Invocation) -> ExecutionOutcome:
        """
        Run starlake with the invocation's arguments.

        Environment assignments from --options are layered over the base
        environment of the child only; stdout and stderr are inherited.

        Raises:
            ConfigurationError: If the starlake launcher cannot be found
        """
        binary = shutil.which(self.command)
        if not binary:
            raise ConfigurationError(f"Local starlake command not found: {self.command}")

        parsed = split_options(invocation.raw_options, self.env_prefix)
        arguments = build_arguments(invocation, parsed)
        env = {**self.environ, **parsed.env}

        logger.info(f"Running locally: {binary} {' '.join(arguments)}")
        try:
            process = subprocess.run([binary, *arguments], env=env)
        except OSError as e:
            raise ConfigurationError(f"Failed to start {binary}: {e}") from e

        logger.info(f"Local starlake exited with code {process.returncode}")
        return outcome_from_exit_code(process.returncode)
