"""
Tests for the environment/YAML configuration provider.
"""

import os
import sys

import pytest
import yaml

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from slkube.config.provider import (
    DEFAULT_KUBECTL_SEARCH_PATH,
    DEFAULT_TEMPLATE_PATH,
    MODE_KUBERNETES,
    EnvConfigProvider,
    PollingConfig,
)
from slkube.errors import ConfigurationError


class TestEnvConfigProvider:
    """Test EnvConfigProvider."""

    def setup_method(self):
        """Point the YAML lookup at a path that does not exist."""
        self.base_env = {"DISPATCHER_CONFIG_PATH": "/nonexistent/dispatcher.yaml"}

    def _provider(self, service_account_dir, **env):
        return EnvConfigProvider(environ={**self.base_env, **env}, service_account_dir=str(service_account_dir))

    def test_defaults(self, tmp_path):
        provider = self._provider(tmp_path)

        config = provider.get_dispatch_config()

        assert config.mode == MODE_KUBERNETES
        assert config.namespace == "default"
        assert config.template_path == DEFAULT_TEMPLATE_PATH
        assert config.local_command == "/app/starlake/starlake"
        assert config.container_name == "starlake"
        assert config.env_prefix == "SL_"
        assert config.strict_completion is False
        assert provider.get_polling_config() == PollingConfig()

    def test_environment_overrides(self, tmp_path):
        provider = self._provider(
            tmp_path,
            SL_DISPATCH_MODE="LOCAL",
            STARLAKE_NAMESPACE="analytics",
            JOB_TEMPLATE_PATH="/config/job.yaml",
            SL_LOCAL_COMMAND="starlake.sh",
            SL_DISPATCH_STRICT="true",
        )

        config = provider.get_dispatch_config()

        assert config.mode == "local"
        assert config.namespace == "analytics"
        assert config.template_path == "/config/job.yaml"
        assert config.local_command == "starlake.sh"
        assert config.strict_completion is True

    def test_namespace_from_service_account(self, service_account):
        provider = self._provider(service_account)
        assert provider.get_dispatch_config().namespace == "starlake"

    def test_explicit_namespace_beats_service_account(self, service_account):
        provider = self._provider(service_account, STARLAKE_NAMESPACE="analytics")
        assert provider.get_dispatch_config().namespace == "analytics"

    def test_api_server_from_service_env(self, tmp_path):
        provider = self._provider(tmp_path, KUBERNETES_SERVICE_HOST="10.96.0.1", KUBERNETES_SERVICE_PORT="6443")

        config = provider.get_cluster_config()

        assert config.api_server == "https://10.96.0.1:6443"
        assert config.token_path == f"{tmp_path}/token"
        assert config.ca_cert_path == f"{tmp_path}/ca.crt"
        assert config.kubectl_search_path == DEFAULT_KUBECTL_SEARCH_PATH

    def test_api_server_fallback(self, tmp_path):
        provider = self._provider(tmp_path)
        assert provider.get_cluster_config().api_server == "https://kubernetes.default.svc:443"

    def test_environ_snapshot(self, tmp_path):
        provider = self._provider(tmp_path, SL_ENV="DEV")
        assert provider.get_environ()["SL_ENV"] == "DEV"


class TestYamlConfig:
    """Test the optional YAML configuration file."""

    def _write(self, path, data):
        with open(path, "w") as f:
            yaml.safe_dump(data, f)

    def test_file_overrides(self, tmp_path):
        config_path = tmp_path / "dispatcher.yaml"
        self._write(
            config_path,
            {
                "containerName": "worker",
                "strictCompletion": True,
                "polling": {
                    "podAttempts": 10,
                    "podIntervalSeconds": 1,
                    "completionTimeoutSeconds": 600,
                    "completionIntervalSeconds": 2,
                    "settleDelaySeconds": 0,
                },
                "kubectl": {"searchPath": ["/opt/bin/kubectl"], "timeoutSeconds": 15},
            },
        )

        provider = EnvConfigProvider(
            environ={"DISPATCHER_CONFIG_PATH": str(config_path)}, service_account_dir=str(tmp_path)
        )

        dispatch = provider.get_dispatch_config()
        polling = provider.get_polling_config()
        cluster = provider.get_cluster_config()

        assert dispatch.container_name == "worker"
        assert dispatch.strict_completion is True
        assert polling == PollingConfig(
            pod_attempts=10,
            pod_interval_seconds=1.0,
            completion_timeout_seconds=600.0,
            completion_interval_seconds=2.0,
            settle_delay_seconds=0.0,
        )
        assert cluster.kubectl_search_path == ["/opt/bin/kubectl"]
        assert cluster.kubectl_timeout_seconds == 15

    def test_environment_beats_file(self, tmp_path):
        config_path = tmp_path / "dispatcher.yaml"
        self._write(config_path, {"strictCompletion": True})

        provider = EnvConfigProvider(
            environ={"DISPATCHER_CONFIG_PATH": str(config_path), "SL_DISPATCH_STRICT": "false"},
            service_account_dir=str(tmp_path),
        )

        assert provider.get_dispatch_config().strict_completion is False

    def test_invalid_yaml(self, tmp_path):
        config_path = tmp_path / "dispatcher.yaml"
        config_path.write_text("polling: [unclosed\n")

        with pytest.raises(ConfigurationError):
            EnvConfigProvider(environ={"DISPATCHER_CONFIG_PATH": str(config_path)})

    def test_not_a_mapping(self, tmp_path):
        config_path = tmp_path / "dispatcher.yaml"
        config_path.write_text("- a\n- b\n")

        with pytest.raises(ConfigurationError) as exc_info:
            EnvConfigProvider(environ={"DISPATCHER_CONFIG_PATH": str(config_path)})
        assert "expected a mapping" in str(exc_info.value)

    def test_empty_file(self, tmp_path):
        config_path = tmp_path / "dispatcher.yaml"
        config_path.write_text("")

        provider = EnvConfigProvider(environ={"DISPATCHER_CONFIG_PATH": str(config_path)})

        assert provider.get_polling_config() == PollingConfig()
