"""
Executor Module - Black Box Interface

Purpose: Run a starlake invocation and report its outcome
Interface: CommandExecutor.execute(), ExecutorFactory.build()
Hidden: Whether the command runs as a local subprocess or as a Kubernetes Job

The strategy is selected once at startup from SL_DISPATCH_MODE.
"""

from .factory import ExecutorFactory
from .interfaces import CommandExecutor
from .kubernetes import KubernetesJobExecutor
from .local import LocalExecutor

__all__ = ["CommandExecutor", "ExecutorFactory", "KubernetesJobExecutor", "LocalExecutor"]
