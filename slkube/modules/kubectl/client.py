"""
kubectl client for in-cluster Job management.

Wraps the kubectl binary with ServiceAccount authentication. Every call is a
plain subprocess. Read-only queries return an empty value when kubectl fails,
like a shell `2>/dev/null || true`; while polling, "not observable yet" and
"kubectl failed" look the same.
"""

import logging
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence

from slkube.config.provider import ClusterConfig
from slkube.errors import ConfigurationError, CredentialsError

logger = logging.getLogger("slkube.kubectl")


@dataclass
class KubectlResult:
    """Outcome of a single kubectl invocation."""

    stdout: str = ""
    stderr: str = ""
    returncode: int = 0

    @property
    def success(self) -> bool:
        return self.returncode == 0

    @property
    def output(self) -> str:
        return self.stdout.strip()


@dataclass
class ClusterCredentials:
    """In-cluster API server address and ServiceAccount credentials."""

    api_server: str
    token: str
    ca_cert_path: str


def find_kubectl(search_path: Sequence[str]) -> str:
    """
    Locate a usable kubectl binary.

    Args:
        search_path: Absolute paths or bare names, tried in order

    Raises:
        ConfigurationError: If none of the locations is executable
    """
    for location in search_path:
        resolved = shutil.which(location)
        if resolved:
            logger.debug(f"Using kubectl at {resolved}")
            return resolved

    raise ConfigurationError(f"kubectl not found. Searched: {', '.join(search_path)}, PATH")


def load_credentials(cluster_config: ClusterConfig) -> ClusterCredentials:
    """
    Read the mounted ServiceAccount token and CA certificate.

    Raises:
        CredentialsError: If the token or CA certificate is missing
    """
    token_path = Path(cluster_config.token_path)
    if not token_path.is_file():
        raise CredentialsError(
            f"ServiceAccount token not found at {token_path}. "
            "Make sure automountServiceAccountToken is enabled for this pod"
        )

    if not Path(cluster_config.ca_cert_path).is_file():
        raise CredentialsError(f"ServiceAccount CA certificate not found at {cluster_config.ca_cert_path}")

    return ClusterCredentials(
        api_server=cluster_config.api_server,
        token=token_path.read_text().strip(),
        ca_cert_path=cluster_config.ca_cert_path,
    )


class KubectlClient:
    """kubectl bound to one namespace and one set of credentials."""

    def __init__(
        self,
        binary: str,
        credentials: ClusterCredentials,
        namespace: str,
        timeout: int = 30,
    ):
        self.binary = binary
        self.credentials = credentials
        self.namespace = namespace
        self.timeout = timeout

    @classmethod
    def from_config(cls, cluster_config: ClusterConfig, namespace: str) -> "KubectlClient":
        """Discover kubectl and load credentials; fails fast on either."""
        binary = find_kubectl(cluster_config.kubectl_search_path)
        credentials = load_credentials(cluster_config)
        return cls(binary, credentials, namespace, timeout=cluster_config.kubectl_timeout_seconds)

    def _command(self, args: Sequence[str]) -> List[str]:
        return [
            self.binary,
            f"--server={self.credentials.api_server}",
            f"--token={self.credentials.token}",
            f"--certificate-authority={self.credentials.ca_cert_path}",
            *args,
        ]

    def run(self, args: Sequence[str]) -> KubectlResult:
        """
        Execute kubectl and capture its output.

        Args:
            args: kubectl arguments (without the binary and auth flags)

        Returns:
            KubectlResult; timeouts and launch failures map to returncode -1
        """
        cmd = self._command(args)
        logger.debug(f"Running: {' '.join(cmd)}")

        try:
            process = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired:
            logger.warning(f"kubectl {' '.join(args[:2])} timed out after {self.timeout}s")
            return KubectlResult(stderr="Command timed out", returncode=-1)
        except OSError as e:
            logger.error(f"kubectl execution failed: {e}")
            return KubectlResult(stderr=str(e), returncode=-1)

        return KubectlResult(
            stdout=process.stdout or "",
            stderr=process.stderr or "",
            returncode=process.returncode,
        )

    def query(self, args: Sequence[str]) -> str:
        """Run a read-only query; empty string when kubectl fails."""
        result = self.run(args)
        if not result.success:
            logger.debug(f"Query failed ({result.returncode}): {result.stderr.strip()}")
            return ""
        return result.output

    # Job lifecycle

    def apply(self, manifest_path: str) -> KubectlResult:
        """Create the Job; client-side schema validation is disabled."""
        return self.run(["apply", "-f", manifest_path, "-n", self.namespace, "--validate=false"])

    def find_job_pod(self, job_name: str) -> str:
        """Name of the first pod created by the Job, or empty string."""
        return self.query(
            [
                "get", "pods", "-n", self.namespace,
                "-l", f"job-name={job_name}",
                "-o", "jsonpath={.items[0].metadata.name}",
            ]
        )

    def pod_phase(self, pod_name: str) -> str:
        """Pod phase; unknown phases are reported as Pending."""
        phase = self.query(["get", "pod", pod_name, "-n", self.namespace, "-o", "jsonpath={.status.phase}"])
        return phase or "Pending"

    def container_exit_code(self, pod_name: str, container: str) -> Optional[int]:
        """Exit code of a terminated container, or None if not observable."""
        raw = self.query(
            [
                "get", "pod", pod_name, "-n", self.namespace,
                "-o", f'jsonpath={{.status.containerStatuses[?(@.name=="{container}")].state.terminated.exitCode}}',
            ]
        )
        if not raw:
            return None
        try:
            return int(raw.split()[0])
        except ValueError:
            logger.warning(f"Unexpected exit code value for pod {pod_name}: {raw!r}")
            return None

    def job_exists(self, job_name: str) -> bool:
        return bool(self.query(["get", "job", job_name, "-n", self.namespace, "-o", "name"]))

    def job_condition(self, job_name: str, condition: str) -> str:
        """Status ("True", "False" or empty) of a Job condition such as Complete."""
        return self.query(
            [
                "get", "job", job_name, "-n", self.namespace,
                "-o", f'jsonpath={{.status.conditions[?(@.type=="{condition}")].status}}',
            ]
        )

    def describe_job(self, job_name: str) -> str:
        """YAML dump of the Job, used for diagnostics."""
        result = self.run(["get", "jobs", "-n", self.namespace, "-l", f"job-name={job_name}", "-o", "yaml"])
        return result.output or result.stderr.strip()

    def stream_logs(self, pod_name: str, container: str) -> int:
        """
        Follow container logs until the stream closes.

        Output goes straight to the dispatcher's stdout; kubectl's stderr is
        discarded. Returns kubectl's exit code, which callers may ignore.
        """
        cmd = self._command(["logs", "-f", pod_name, "-n", self.namespace, "-c", container])
        logger.debug(f"Streaming: {' '.join(cmd)}")
        try:
            process = subprocess.run(cmd, stderr=subprocess.DEVNULL)
        except OSError as e:
            logger.error(f"Log streaming failed: {e}")
            return -1
        return process.returncode
