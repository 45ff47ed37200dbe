"""Configuration provider following Black Box Design principles."""
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Protocol

import yaml

from slkube.errors import ConfigurationError

logger = logging.getLogger("slkube.config")

SERVICE_ACCOUNT_DIR = "/var/run/secrets/kubernetes.io/serviceaccount"
DEFAULT_TEMPLATE_PATH = "/etc/starlake/job-template.yaml"
DEFAULT_CONFIG_PATH = "/etc/starlake/dispatcher.yaml"
DEFAULT_KUBECTL_SEARCH_PATH = [
    "/shared-tools/bin/kubectl",
    "/usr/local/bin/kubectl",
    "/usr/bin/kubectl",
    "kubectl",
]

MODE_KUBERNETES = "kubernetes"
MODE_LOCAL = "local"


@dataclass
class PollingConfig:
    """Polling budgets for pod appearance and job completion."""
    pod_attempts: int = 60
    pod_interval_seconds: float = 2
    completion_timeout_seconds: float = 3600
    completion_interval_seconds: float = 5
    settle_delay_seconds: float = 1


@dataclass
class ClusterConfig:
    """In-cluster access configuration."""
    api_server: str
    token_path: str
    ca_cert_path: str
    namespace_path: str
    kubectl_search_path: List[str] = field(default_factory=lambda: list(DEFAULT_KUBECTL_SEARCH_PATH))
    kubectl_timeout_seconds: int = 30


@dataclass
class DispatchConfig:
    """Dispatcher configuration."""
    mode: str
    namespace: str
    template_path: str
    local_command: str
    container_name: str = "starlake"
    env_prefix: str = "SL_"
    strict_completion: bool = False


class ConfigProvider(Protocol):
    """Protocol for configuration providers."""

    def get_dispatch_config(self) -> DispatchConfig:
        """Get dispatcher configuration."""
        ...

    def get_cluster_config(self) -> ClusterConfig:
        """Get cluster access configuration."""
        ...

    def get_polling_config(self) -> PollingConfig:
        """Get polling budgets."""
        ...

    def get_environ(self) -> Mapping[str, str]:
        """Get the environment the dispatcher was started with."""
        ...


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).lower() == "true"


class EnvConfigProvider:
    """
    Environment-based configuration provider.

    Environment variables take precedence; an optional YAML file
    (DISPATCHER_CONFIG_PATH) tunes polling budgets and kubectl discovery:

        containerName: starlake
        strictCompletion: false
        polling:
          podAttempts: 60
          podIntervalSeconds: 2
          completionTimeoutSeconds: 3600
          completionIntervalSeconds: 5
          settleDelaySeconds: 1
        kubectl:
          searchPath: [/usr/local/bin/kubectl, kubectl]
          timeoutSeconds: 30
    """

    def __init__(
        self,
        environ: Optional[Mapping[str, str]] = None,
        service_account_dir: str = SERVICE_ACCOUNT_DIR,
    ):
        self._environ = dict(os.environ if environ is None else environ)
        self._service_account_dir = service_account_dir
        self._file_config = self._load_file_config(
            self._environ.get("DISPATCHER_CONFIG_PATH", DEFAULT_CONFIG_PATH)
        )

    @staticmethod
    def _load_file_config(path: str) -> Dict[str, Any]:
        """
        Load the optional YAML configuration file.

        Raises:
            ConfigurationError: If the file exists but is not a YAML mapping
        """
        config_path = Path(path)
        if not config_path.is_file():
            logger.debug(f"No dispatcher config file at {path}, using defaults")
            return {}

        try:
            with open(config_path) as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid dispatcher config {path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigurationError(f"Invalid dispatcher config {path}: expected a mapping")

        logger.info(f"Loaded dispatcher config from {path}")
        return data

    def get_environ(self) -> Mapping[str, str]:
        """Snapshot of the environment taken at construction."""
        return self._environ

    def get_dispatch_config(self) -> DispatchConfig:
        """Get dispatcher configuration from environment variables."""
        env = self._environ
        strict = env.get("SL_DISPATCH_STRICT", self._file_config.get("strictCompletion", False))

        return DispatchConfig(
            mode=env.get("SL_DISPATCH_MODE", MODE_KUBERNETES).lower(),
            namespace=self._resolve_namespace(),
            template_path=env.get("JOB_TEMPLATE_PATH", DEFAULT_TEMPLATE_PATH),
            local_command=env.get("SL_LOCAL_COMMAND", "/app/starlake/starlake"),
            container_name=self._file_config.get("containerName", "starlake"),
            strict_completion=_as_bool(strict),
        )

    def get_cluster_config(self) -> ClusterConfig:
        """Get in-cluster access configuration."""
        env = self._environ
        host = env.get("KUBERNETES_SERVICE_HOST")
        if host:
            api_server = f"https://{host}:{env.get('KUBERNETES_SERVICE_PORT', '443')}"
        else:
            # Subprocesses of Airflow tasks do not always inherit the service env vars
            api_server = "https://kubernetes.default.svc:443"

        kubectl = self._file_config.get("kubectl", {}) or {}
        return ClusterConfig(
            api_server=api_server,
            token_path=f"{self._service_account_dir}/token",
            ca_cert_path=f"{self._service_account_dir}/ca.crt",
            namespace_path=f"{self._service_account_dir}/namespace",
            kubectl_search_path=list(kubectl.get("searchPath", DEFAULT_KUBECTL_SEARCH_PATH)),
            kubectl_timeout_seconds=int(kubectl.get("timeoutSeconds", 30)),
        )

    def get_polling_config(self) -> PollingConfig:
        """Get polling budgets, overridable from the YAML file."""
        polling = self._file_config.get("polling", {}) or {}
        defaults = PollingConfig()
        return PollingConfig(
            pod_attempts=int(polling.get("podAttempts", defaults.pod_attempts)),
            pod_interval_seconds=float(polling.get("podIntervalSeconds", defaults.pod_interval_seconds)),
            completion_timeout_seconds=float(
                polling.get("completionTimeoutSeconds", defaults.completion_timeout_seconds)
            ),
            completion_interval_seconds=float(
                polling.get("completionIntervalSeconds", defaults.completion_interval_seconds)
            ),
            settle_delay_seconds=float(polling.get("settleDelaySeconds", defaults.settle_delay_seconds)),
        )

    def _resolve_namespace(self) -> str:
        """STARLAKE_NAMESPACE, else the ServiceAccount namespace, else default."""
        namespace = self._environ.get("STARLAKE_NAMESPACE", "default")
        if namespace != "default":
            return namespace

        try:
            with open(f"{self._service_account_dir}/namespace") as f:
                return f.read().strip() or namespace
        except OSError:
            return namespace
