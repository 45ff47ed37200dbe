"""
Kubernetes Job dispatcher.

Runs one starlake command as a batch Job and blocks until its outcome is
known, so the caller sees it exactly like a local subprocess:

    Submitted -> PodPending -> PodRunning (streaming logs)
              -> ExitObserved | JobDeletedAssumedSuccess | Timeout

Each dispatch is one-shot. A new run needs a new submit() with a freshly
generated Job name; the dispatcher keeps no state between invocations.
"""

import logging
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, List, Mapping, Optional

from slkube.config.provider import DispatchConfig, PollingConfig
from slkube.errors import PodNotFoundError, SubmissionError
from slkube.modules.kubectl import KubectlClient
from slkube.modules.manifest import generate_job_name, load_template, manifest_file, render_manifest
from slkube.modules.models import (
    ExecutionOutcome,
    Invocation,
    OutcomeStatus,
    SubmittedJob,
    outcome_from_exit_code,
)
from slkube.modules.options import build_arguments, job_environment, resolve_root, split_options

logger = logging.getLogger("slkube.dispatcher")


@dataclass
class RenderedJob:
    """Everything needed to submit one invocation."""

    job_name: str
    arguments: List[str]
    root_path: str
    env: Mapping[str, str]
    manifest: str


class JobDispatcher:
    """Synchronous facade over an asynchronous Kubernetes Job."""

    def __init__(
        self,
        kubectl: KubectlClient,
        dispatch_config: DispatchConfig,
        polling: PollingConfig,
        environ: Mapping[str, str],
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Initialize dispatcher.

        Args:
            kubectl: Client bound to the target namespace
            dispatch_config: Template path, container name, env prefix
            polling: Pod appearance and completion budgets
            environ: Environment snapshot whose prefixed variables are forwarded
            sleep: Blocking wait, injectable for tests
        """
        self.kubectl = kubectl
        self.config = dispatch_config
        self.polling = polling
        self.environ = environ
        self._sleep = sleep

    @property
    def namespace(self) -> str:
        return self.kubectl.namespace

    def render(
        self,
        invocation: Invocation,
        now: Optional[datetime] = None,
        suffix: Optional[int] = None,
    ) -> RenderedJob:
        """
        Build the manifest for an invocation without touching the cluster.

        Raises:
            ConfigurationError: If the Job template is missing
        """
        template = load_template(self.config.template_path)

        parsed = split_options(invocation.raw_options, self.config.env_prefix)
        arguments = build_arguments(invocation, parsed)
        root_path = resolve_root(parsed.env, self.environ)
        env = job_environment(parsed.env, self.environ, self.config.env_prefix)
        job_name = generate_job_name(invocation.command, now=now, suffix=suffix)

        manifest = render_manifest(template, job_name, arguments, root_path, env)
        return RenderedJob(
            job_name=job_name,
            arguments=arguments,
            root_path=root_path,
            env=env,
            manifest=manifest,
        )

    def submit(self, invocation: Invocation) -> SubmittedJob:
        """
        Render and apply the Job manifest.

        Raises:
            ConfigurationError: If the Job template is missing
            SubmissionError: If kubectl apply fails (carries kubectl's exit code)
        """
        rendered = self.render(invocation)

        logger.info(f"=== Creating Kubernetes Job: {rendered.job_name} ===")
        logger.info(f"Command: starlake {' '.join(rendered.arguments)}")
        logger.info(f"Namespace: {self.namespace}")
        logger.info(f"SL_ROOT: {rendered.root_path}")

        with manifest_file(rendered.manifest) as path:
            result = self.kubectl.apply(path)

        if not result.success:
            raise SubmissionError(
                f"kubectl apply failed for Job {rendered.job_name}: {result.stderr.strip()}",
                exit_code=result.returncode if result.returncode > 0 else 1,
            )
        if result.output:
            logger.info(result.output)

        return SubmittedJob(
            job_name=rendered.job_name,
            namespace=self.namespace,
            arguments=rendered.arguments,
        )

    def await_pod(self, job_name: str) -> str:
        """
        Wait for the Job's pod to leave the Pending phase.

        A pod still Pending when the budget runs out is returned anyway; log
        streaming and completion polling take over from there.

        Raises:
            PodNotFoundError: If no pod appeared within the budget
        """
        logger.info("=== Waiting for pod to start ===")
        pod_name = ""

        for attempt in range(1, self.polling.pod_attempts + 1):
            pod_name = self.kubectl.find_job_pod(job_name)
            if pod_name:
                phase = self.kubectl.pod_phase(pod_name)
                if phase != "Pending":
                    logger.debug(f"Pod {pod_name} is {phase} after {attempt} attempt(s)")
                    return pod_name
            self._sleep(self.polling.pod_interval_seconds)

        if not pod_name:
            budget = self.polling.pod_attempts * self.polling.pod_interval_seconds
            logger.error(f"Job state:\n{self.kubectl.describe_job(job_name)}")
            raise PodNotFoundError(f"Pod not created after {budget:g} seconds for Job {job_name}")

        logger.warning(f"Pod {pod_name} still Pending, continuing")
        return pod_name

    def stream_and_resolve(self, job_name: str, pod_name: str) -> ExecutionOutcome:
        """
        Stream pod logs, then resolve the exit code.

        The terminated container's exit code is read once right after the
        log stream closes, before a TTL policy can delete the Job. Only when
        it is not yet observable does this fall back to polling the Job.
        """
        logger.info(f"=== Pod {pod_name} started, streaming logs ===")
        self.kubectl.stream_logs(pod_name, self.config.container_name)

        logger.info("=== Checking job completion status ===")
        # Give the kubelet a moment to publish the terminated state
        self._sleep(self.polling.settle_delay_seconds)

        exit_code = self.kubectl.container_exit_code(pod_name, self.config.container_name)
        if exit_code is not None:
            return self._observed(exit_code, job_name, pod_name)

        return self._poll_completion(job_name, pod_name)

    def _poll_completion(self, job_name: str, pod_name: str) -> ExecutionOutcome:
        logger.info("=== Waiting for job completion (polling) ===")
        waited = 0.0

        while waited < self.polling.completion_timeout_seconds:
            if not self.kubectl.job_exists(job_name):
                logger.info("Job was deleted (likely completed and cleaned up by TTL)")
                exit_code = self.kubectl.container_exit_code(pod_name, self.config.container_name)
                if exit_code is not None:
                    return self._observed(exit_code, job_name, pod_name)

                logger.warning(
                    "=== Job and pod were cleaned up before an exit code was observed; "
                    "assuming success (unverified) ==="
                )
                return ExecutionOutcome(
                    status=OutcomeStatus.ASSUMED_SUCCESS,
                    exit_code=0,
                    job_name=job_name,
                    pod_name=pod_name,
                    detail="Job and pod deleted before an exit code was observed",
                )

            if self.kubectl.job_condition(job_name, "Complete") == "True":
                logger.info("=== Job completed successfully ===")
                return outcome_from_exit_code(0, job_name, pod_name, detail="Job condition Complete")

            if self.kubectl.job_condition(job_name, "Failed") == "True":
                exit_code = self.kubectl.container_exit_code(pod_name, self.config.container_name)
                if exit_code is None or exit_code == 0:
                    exit_code = 1
                logger.error(f"=== Job failed (exit code: {exit_code}) ===")
                return outcome_from_exit_code(exit_code, job_name, pod_name, detail="Job condition Failed")

            self._sleep(self.polling.completion_interval_seconds)
            waited += self.polling.completion_interval_seconds

        logger.error(f"=== Timeout waiting for job completion ===\n{self.kubectl.describe_job(job_name)}")
        return ExecutionOutcome(
            status=OutcomeStatus.TIMEOUT,
            exit_code=1,
            job_name=job_name,
            pod_name=pod_name,
            detail=f"No terminal state after {self.polling.completion_timeout_seconds:g} seconds",
        )

    @staticmethod
    def _observed(exit_code: int, job_name: str, pod_name: str) -> ExecutionOutcome:
        if exit_code == 0:
            logger.info("=== Job completed successfully (exit code: 0) ===")
        else:
            logger.error(f"=== Job failed (exit code: {exit_code}) ===")
        return outcome_from_exit_code(exit_code, job_name, pod_name)

    def dispatch(self, invocation: Invocation) -> ExecutionOutcome:
        """Submit, wait for the pod, stream logs and resolve the outcome."""
        submitted = self.submit(invocation)
        pod_name = self.await_pod(submitted.job_name)
        return self.stream_and_resolve(submitted.job_name, pod_name)
