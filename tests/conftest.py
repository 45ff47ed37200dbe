"""
Shared pytest fixtures for slkube tests.

This module provides common fixtures including:
- KubectlMocker: Mock kubectl subprocess calls with canned responses
- A fake ServiceAccount mount and Job template
- A JobDispatcher wired to the mocked kubectl with a recording sleep
"""

import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Pattern, Union
from unittest.mock import MagicMock, patch

import pytest

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from slkube.config.provider import DispatchConfig, PollingConfig
from slkube.modules.dispatcher import JobDispatcher
from slkube.modules.kubectl import ClusterCredentials, KubectlClient

FIXTURES_DIR = Path(__file__).parent / "fixtures"
JOB_TEMPLATE = FIXTURES_DIR / "job-template.yaml"

_AUTH_FLAGS = ("--server=", "--token=", "--certificate-authority=")


# =============================================================================
# Kubectl Mocking Infrastructure
# =============================================================================

@dataclass
class KubectlResponse:
    """Represents a mocked kubectl command response."""
    stdout: str = ""
    stderr: str = ""
    returncode: int = 0

    def to_completed_process(self) -> MagicMock:
        """Convert to a subprocess.CompletedProcess-like mock."""
        result = MagicMock()
        result.stdout = self.stdout
        result.stderr = self.stderr
        result.returncode = self.returncode
        return result


NOT_FOUND = KubectlResponse(stderr='Error from server (NotFound): not found', returncode=1)


@dataclass
class KubectlCall:
    """Record of a kubectl call made during testing."""
    command: List[str]
    kubectl_args: str
    matched_pattern: Optional[str] = None
    response: Optional[KubectlResponse] = None


class KubectlMocker:
    """
    Mock kubectl subprocess calls with pattern-matched responses.

    Auth flags (--server, --token, --certificate-authority) are stripped
    before matching, so patterns only describe the kubectl verb and its
    arguments. A pattern may map to a sequence of responses to simulate
    state changing between polls; the last response repeats.

    Usage:
        def test_pod_lookup(kubectl_mocker):
            kubectl_mocker.register("get pods", KubectlResponse(stdout="mypod"))
            kubectl_mocker.register_sequence("jsonpath={.status.phase}", [
                KubectlResponse(stdout="Pending"),
                KubectlResponse(stdout="Running"),
            ])
    """

    def __init__(self):
        self._responses: List[tuple] = []
        self._call_history: List[KubectlCall] = []
        self._default_response = KubectlResponse(
            stderr="Error: mock not configured for this command",
            returncode=1
        )

    def register(
        self,
        pattern: Union[str, Pattern],
        response: KubectlResponse,
        priority: int = 0
    ) -> "KubectlMocker":
        """
        Register a response for commands matching the pattern.

        Args:
            pattern: String (substring match) or regex pattern
            response: KubectlResponse to return when matched
            priority: Higher priority patterns are checked first
        """
        return self.register_sequence(pattern, [response], priority)

    def register_sequence(
        self,
        pattern: Union[str, Pattern],
        responses: List[KubectlResponse],
        priority: int = 0
    ) -> "KubectlMocker":
        """Register successive responses; the last one repeats."""
        self._responses.append((pattern, list(responses), priority))
        # Sort by priority (highest first)
        self._responses.sort(key=lambda x: x[2], reverse=True)
        return self

    def register_scenario(self, scenario_name: str) -> "KubectlMocker":
        """Register all responses for a named scenario."""
        from fixtures.kubectl_scenarios import SCENARIOS

        if scenario_name not in SCENARIOS:
            raise ValueError(
                f"Unknown scenario: {scenario_name}. "
                f"Available: {list(SCENARIOS.keys())}"
            )

        for pattern, response in SCENARIOS[scenario_name].items():
            if isinstance(response, list):
                self.register_sequence(pattern, response)
            else:
                self.register(pattern, response)

        return self

    def mock_run(
        self,
        cmd: List[str],
        capture_output: bool = False,
        text: bool = False,
        timeout: Optional[int] = None,
        **kwargs
    ) -> MagicMock:
        """
        Mock implementation of subprocess.run for kubectl commands.

        This method is used as a side_effect for patching subprocess.run.
        """
        if os.path.basename(cmd[0]) != "kubectl":
            raise RuntimeError(f"Non-kubectl command blocked: {' '.join(cmd)}")

        args = [a for a in cmd[1:] if not a.startswith(_AUTH_FLAGS)]
        kubectl_args = " ".join(args)
        matched_pattern = None
        response = self._default_response

        for pattern, responses, _ in self._responses:
            if isinstance(pattern, str):
                matched = pattern in kubectl_args
            else:  # Compiled regex
                matched = bool(pattern.search(kubectl_args))
            if matched:
                matched_pattern = pattern if isinstance(pattern, str) else pattern.pattern
                response = responses.pop(0) if len(responses) > 1 else responses[0]
                break

        self._call_history.append(KubectlCall(
            command=list(cmd),
            kubectl_args=kubectl_args,
            matched_pattern=matched_pattern,
            response=response
        ))

        return response.to_completed_process()

    @property
    def calls(self) -> List[KubectlCall]:
        """Get all kubectl calls made during the test."""
        return self._call_history

    @property
    def call_count(self) -> int:
        """Get the number of kubectl calls made."""
        return len(self._call_history)

    def was_called_with(self, pattern: str) -> bool:
        """Check if any call contained the given pattern."""
        return any(pattern in call.kubectl_args for call in self._call_history)

    def get_calls_matching(self, pattern: str) -> List[KubectlCall]:
        """Get all calls containing the given pattern."""
        return [c for c in self._call_history if pattern in c.kubectl_args]


@pytest.fixture
def kubectl_mocker():
    """KubectlMocker installed as subprocess.run for the duration of a test."""
    mocker = KubectlMocker()
    with patch("subprocess.run", side_effect=mocker.mock_run):
        yield mocker


# =============================================================================
# Dispatcher Fixtures
# =============================================================================

class RecordingSleep:
    """Stand-in for time.sleep that records requested delays."""

    def __init__(self):
        self.calls: List[float] = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def recording_sleep():
    return RecordingSleep()


@pytest.fixture
def service_account(tmp_path):
    """Fake ServiceAccount mount with token, CA certificate and namespace."""
    sa_dir = tmp_path / "serviceaccount"
    sa_dir.mkdir()
    (sa_dir / "token").write_text("test-token-abc123\n")
    (sa_dir / "ca.crt").write_text("-----BEGIN CERTIFICATE-----\n")
    (sa_dir / "namespace").write_text("starlake\n")
    return sa_dir


@pytest.fixture
def job_template():
    return str(JOB_TEMPLATE)


@pytest.fixture
def kubectl_client():
    credentials = ClusterCredentials(
        api_server="https://10.0.0.1:443",
        token="test-token-abc123",
        ca_cert_path="/var/run/secrets/kubernetes.io/serviceaccount/ca.crt",
    )
    return KubectlClient("kubectl", credentials, namespace="starlake")


@pytest.fixture
def dispatch_config(job_template):
    return DispatchConfig(
        mode="kubernetes",
        namespace="starlake",
        template_path=job_template,
        local_command="/app/starlake/starlake",
    )


@pytest.fixture
def make_dispatcher(kubectl_client, dispatch_config, recording_sleep):
    """Factory building a JobDispatcher over the mocked kubectl."""

    def _make(environ: Optional[Dict[str, str]] = None, polling: Optional[PollingConfig] = None):
        return JobDispatcher(
            kubectl=kubectl_client,
            dispatch_config=dispatch_config,
            polling=polling or PollingConfig(),
            environ=environ or {},
            sleep=recording_sleep,
        )

    return _make


# =============================================================================
# Test Markers Configuration
# =============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "kubectl_mock: Tests using mocked kubectl subprocess calls"
    )
