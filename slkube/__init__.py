"""
slkube - Starlake on Kubernetes

Runs Starlake CLI commands as ephemeral Kubernetes Jobs and reports their
outcome as if they had been run as a local subprocess.

Architecture:
- Each module is self-contained with clear interfaces
- Modules are completely replaceable
- No module knows the internals of another
- All communication through defined interfaces

Modules:
- models: Shared data models (invocation, parsed options, outcomes)
- options: Command line and --options parsing
- manifest: Job name generation and template rendering
- kubectl: kubectl discovery, in-cluster credentials and queries
- dispatcher: Job submission, pod tracking and exit code resolution
- executor: Local and Kubernetes execution strategies
- regression: Starlake REST API regression checks
"""

__version__ = "1.0.0"
