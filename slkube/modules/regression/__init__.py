"""
Regression Module - Black Box Interface

Purpose: End-to-end storage regression checks against a deployed Starlake API
Interface: RegressionSuite.run() -> RegressionReport, StarlakeApiClient
Hidden: Endpoint paths, response shape tolerance, 86-byte marker detection
"""

from .checks import (
    CheckResult,
    CheckStatus,
    RegressionReport,
    RegressionSuite,
    file_count,
    marker_sized_files,
    pick_project,
)
from .client import ApiResponse, StarlakeApiClient

__all__ = [
    "ApiResponse",
    "CheckResult",
    "CheckStatus",
    "RegressionReport",
    "RegressionSuite",
    "StarlakeApiClient",
    "file_count",
    "marker_sized_files",
    "pick_project",
]
