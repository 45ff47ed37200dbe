"""
Models Module - Black Box Interface

Purpose: Shared data structures passed between modules
Interface: Invocation, ParsedOptions, SubmittedJob, ExecutionOutcome
Hidden: Validation rules
"""

from .models import (
    ExecutionOutcome,
    Invocation,
    OutcomeStatus,
    ParsedOptions,
    SubmittedJob,
    outcome_from_exit_code,
)

__all__ = [
    "ExecutionOutcome",
    "Invocation",
    "OutcomeStatus",
    "ParsedOptions",
    "SubmittedJob",
    "outcome_from_exit_code",
]
