"""
Dispatcher exception hierarchy.

Distinguishes between:
1. Configuration errors (nothing was submitted, fix the environment)
2. Submission errors (the control plane rejected the Job)
3. Observation timeouts (the Job was submitted but never resolved)

Remote process failures are NOT exceptions: a non-zero exit code from the
dispatched command is a normal ExecutionOutcome and is propagated verbatim.
"""


class DispatchError(Exception):
    """
    Base class for dispatch-level failures.

    Every dispatch error carries the exit code the CLI should terminate with.
    """

    exit_code = 1

    def __init__(self, message: str, exit_code: int = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class ConfigurationError(DispatchError):
    """
    The dispatcher cannot run in this environment.

    Examples:
        - Job template missing at JOB_TEMPLATE_PATH
        - kubectl not found on the search path
        - Unparsable dispatcher YAML configuration
    """

    pass


class InvocationError(ConfigurationError):
    """The command line itself is unusable (no command, dangling --options)."""

    pass


class CredentialsError(ConfigurationError):
    """ServiceAccount token or CA certificate is not mounted."""

    pass


class SubmissionError(DispatchError):
    """kubectl apply rejected the rendered manifest."""

    pass


class ObservationTimeout(DispatchError):
    """A polling budget ran out before the expected state was observed."""

    pass


class PodNotFoundError(ObservationTimeout):
    """No pod was created for the Job within the pod-appearance budget."""

    pass
