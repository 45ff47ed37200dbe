"""Run starlake as an ephemeral Kubernetes Job."""

import logging

from slkube.modules.dispatcher import JobDispatcher
from slkube.modules.models import ExecutionOutcome, Invocation

logger = logging.getLogger("slkube.executor.kubernetes")


class KubernetesJobExecutor:
    """Executor that offloads each command to its own Job."""

    name = "kubernetes"

    def __init__(self, dispatcher: JobDispatcher):
        self.dispatcher = dispatcher

    def execute(self, invocation: Invocation) -> ExecutionOutcome:
        outcome = self.dispatcher.dispatch(invocation)
        logger.debug(
            f"Job {outcome.job_name} resolved as {outcome.status.value} (exit code {outcome.exit_code})"
        )
        return outcome
