"""
Kubectl Module - Black Box Interface

Purpose: Talk to the Kubernetes control plane from inside a pod
Interface: KubectlClient (apply, pod lookup, exit codes, job conditions, logs)
Hidden: Binary discovery, ServiceAccount authentication flags, jsonpath queries

Can be replaced with a client-library implementation without touching the dispatcher.
"""

from .client import (
    ClusterCredentials,
    KubectlClient,
    KubectlResult,
    find_kubectl,
    load_credentials,
)

__all__ = [
    "ClusterCredentials",
    "KubectlClient",
    "KubectlResult",
    "find_kubectl",
    "load_credentials",
]
