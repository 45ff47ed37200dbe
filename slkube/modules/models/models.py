"""
slkube shared data models.

These models define the structure of all data passed between
components in the dispatcher.
"""

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

# Enums


class OutcomeStatus(str, Enum):
    """How an invocation terminated."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"
    # Job and pod were both gone before an exit code could be read
    ASSUMED_SUCCESS = "assumed_success"
    TIMEOUT = "timeout"


# Input Models


class Invocation(BaseModel):
    """A starlake command line, before option splitting."""

    command: str = Field(..., description="Starlake command name", min_length=1)
    arguments: List[str] = Field(
        default_factory=list, description="Positional and native arguments, in order"
    )
    raw_options: Optional[str] = Field(
        None, description="Raw --options value (comma-separated key=value pairs)"
    )

    @field_validator("command")
    @classmethod
    def validate_command(cls, v):
        """Reject blank command names."""
        if not v.strip():
            raise ValueError("Command must not be blank")
        return v


# Internal Models (Used between modules)


class ParsedOptions(BaseModel):
    """Result of splitting a raw --options string."""

    env: Dict[str, str] = Field(
        default_factory=dict, description="Prefix-matched environment assignments"
    )
    passthrough: List[str] = Field(
        default_factory=list, description="Options forwarded to starlake --options"
    )

    @property
    def options_argument(self) -> Optional[str]:
        """Pass-through options joined back into a single --options value."""
        if not self.passthrough:
            return None
        return ",".join(self.passthrough)


class SubmittedJob(BaseModel):
    """A Job that was accepted by the control plane."""

    job_name: str
    namespace: str
    arguments: List[str] = Field(..., description="Final starlake argument list")


# Output Models


class ExecutionOutcome(BaseModel):
    """Terminal result of one invocation."""

    status: OutcomeStatus
    exit_code: int
    job_name: Optional[str] = None
    pod_name: Optional[str] = None
    detail: Optional[str] = Field(None, description="Human readable resolution note")

    @property
    def verified(self) -> bool:
        """True when the exit code was actually observed."""
        return self.status in (OutcomeStatus.SUCCEEDED, OutcomeStatus.FAILED)

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0


def outcome_from_exit_code(
    exit_code: int,
    job_name: Optional[str] = None,
    pod_name: Optional[str] = None,
    detail: Optional[str] = None,
) -> ExecutionOutcome:
    """Build a verified outcome from an observed exit code."""
    return ExecutionOutcome(
        status=OutcomeStatus.SUCCEEDED if exit_code == 0 else OutcomeStatus.FAILED,
        exit_code=exit_code,
        job_name=job_name,
        pod_name=pod_name,
        detail=detail,
    )
