"""
slkube Modules

Each sub-package exposes its public API from __init__.py and keeps the rest
private. The dispatcher only sees kubectl through KubectlClient, and the CLI
only sees execution through the CommandExecutor protocol.
"""
