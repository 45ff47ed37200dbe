"""
Tests for executor selection and the local execution strategy.
"""

import os
import sys
from unittest.mock import MagicMock, patch

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from slkube.config.provider import ClusterConfig, DispatchConfig, PollingConfig
from slkube.errors import ConfigurationError, CredentialsError
from slkube.modules.executor import ExecutorFactory, KubernetesJobExecutor, LocalExecutor
from slkube.modules.models import Invocation, OutcomeStatus


class StaticConfigProvider:
    """In-memory ConfigProvider for tests."""

    def __init__(self, dispatch, cluster=None, polling=None, environ=None):
        self.dispatch = dispatch
        self.cluster = cluster
        self.polling = polling or PollingConfig()
        self.environ = environ or {}

    def get_dispatch_config(self):
        return self.dispatch

    def get_cluster_config(self):
        return self.cluster

    def get_polling_config(self):
        return self.polling

    def get_environ(self):
        return self.environ


def _dispatch(mode, template_path="/etc/starlake/job-template.yaml"):
    return DispatchConfig(
        mode=mode,
        namespace="starlake",
        template_path=template_path,
        local_command="starlake",
    )


def _cluster(sa_dir, search_path):
    return ClusterConfig(
        api_server="https://10.0.0.1:443",
        token_path=str(sa_dir / "token"),
        ca_cert_path=str(sa_dir / "ca.crt"),
        namespace_path=str(sa_dir / "namespace"),
        kubectl_search_path=search_path,
    )


class TestExecutorFactory:
    """Test ExecutorFactory.build."""

    def test_local_mode(self):
        executor = ExecutorFactory.build(StaticConfigProvider(_dispatch("local")))

        assert isinstance(executor, LocalExecutor)
        assert executor.name == "local"
        assert executor.command == "starlake"

    def test_kubernetes_mode(self, service_account):
        provider = StaticConfigProvider(_dispatch("kubernetes"), cluster=_cluster(service_account, ["/bin/sh"]))

        executor = ExecutorFactory.build(provider)

        assert isinstance(executor, KubernetesJobExecutor)
        assert executor.name == "kubernetes"
        assert executor.dispatcher.namespace == "starlake"
        assert executor.dispatcher.kubectl.credentials.token == "test-token-abc123"

    def test_kubernetes_mode_without_kubectl(self, service_account):
        provider = StaticConfigProvider(
            _dispatch("kubernetes"), cluster=_cluster(service_account, ["/nonexistent/kubectl"])
        )

        with patch("shutil.which", return_value=None):
            with pytest.raises(ConfigurationError) as exc_info:
                ExecutorFactory.build(provider)
        assert "kubectl not found" in str(exc_info.value)

    def test_kubernetes_mode_without_credentials(self, tmp_path):
        provider = StaticConfigProvider(_dispatch("kubernetes"), cluster=_cluster(tmp_path, ["/bin/sh"]))

        with pytest.raises(CredentialsError):
            ExecutorFactory.build(provider)

    def test_unknown_mode(self):
        with pytest.raises(ConfigurationError) as exc_info:
            ExecutorFactory.build(StaticConfigProvider(_dispatch("docker")))
        assert "docker" in str(exc_info.value)


class TestLocalExecutor:
    """Test LocalExecutor."""

    def test_runs_with_options_and_environment(self):
        executor = LocalExecutor("starlake", environ={"PATH": "/usr/bin", "SL_ENV": "PROD"})
        invocation = Invocation(
            command="ingest",
            arguments=["--domain", "sales"],
            raw_options="SL_ENV=DEV,date_min=2024-01-01",
        )

        with patch("shutil.which", return_value="/app/starlake/starlake"), \
             patch("subprocess.run", return_value=MagicMock(returncode=0)) as mock_run:
            outcome = executor.execute(invocation)

        assert outcome.status == OutcomeStatus.SUCCEEDED
        cmd = mock_run.call_args[0][0]
        env = mock_run.call_args[1]["env"]
        assert cmd == ["/app/starlake/starlake", "ingest", "--domain", "sales", "--options", "date_min=2024-01-01"]
        assert env == {"PATH": "/usr/bin", "SL_ENV": "DEV"}

    def test_exit_code_propagated(self):
        executor = LocalExecutor("starlake", environ={})

        with patch("shutil.which", return_value="/app/starlake/starlake"), \
             patch("subprocess.run", return_value=MagicMock(returncode=5)):
            outcome = executor.execute(Invocation(command="load"))

        assert outcome.status == OutcomeStatus.FAILED
        assert outcome.exit_code == 5

    def test_command_not_found(self):
        executor = LocalExecutor("starlake", environ={})

        with patch("shutil.which", return_value=None):
            with pytest.raises(ConfigurationError):
                executor.execute(Invocation(command="load"))

    def test_launch_failure(self):
        executor = LocalExecutor("starlake", environ={})

        with patch("shutil.which", return_value="/app/starlake/starlake"), \
             patch("subprocess.run", side_effect=PermissionError("denied")):
            with pytest.raises(ConfigurationError):
                executor.execute(Invocation(command="load"))


@pytest.mark.kubectl_mock
class TestKubernetesJobExecutor:
    """Test KubernetesJobExecutor over the mocked cluster."""

    def test_execute_dispatches(self, kubectl_mocker, make_dispatcher):
        kubectl_mocker.register_scenario("failed_exit_code")

        outcome = KubernetesJobExecutor(make_dispatcher()).execute(Invocation(command="load"))

        assert outcome.exit_code == 3
        assert kubectl_mocker.was_called_with("apply -f")

    def test_execute_is_one_shot(self, kubectl_mocker, make_dispatcher):
        """Each execution submits its own Job."""
        kubectl_mocker.register_scenario("succeeded")
        executor = KubernetesJobExecutor(make_dispatcher())

        first = executor.execute(Invocation(command="load"))
        second = executor.execute(Invocation(command="load"))

        assert len(kubectl_mocker.get_calls_matching("apply -f")) == 2
        assert first.job_name.startswith("sl-load-")
        assert second.job_name.startswith("sl-load-")
