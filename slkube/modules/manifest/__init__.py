"""
Manifest Module - Black Box Interface

Purpose: Produce the Job manifest for one invocation
Interface: generate_job_name(), load_template(), render_manifest(), manifest_file()
Hidden: Placeholder tokens, JSON/YAML escaping, temp file lifecycle

Placeholders are substituted literally; any template engine can produce the
template as long as the four tokens survive.
"""

from .naming import JOB_NAME_PREFIX, MAX_NAME_LENGTH, generate_job_name
from .renderer import (
    ARGS_PLACEHOLDER,
    ENV_PLACEHOLDER,
    JOB_NAME_PLACEHOLDER,
    ROOT_PLACEHOLDER,
    load_template,
    manifest_file,
    render_arguments,
    render_env_block,
    render_manifest,
)

__all__ = [
    "ARGS_PLACEHOLDER",
    "ENV_PLACEHOLDER",
    "JOB_NAME_PLACEHOLDER",
    "JOB_NAME_PREFIX",
    "MAX_NAME_LENGTH",
    "ROOT_PLACEHOLDER",
    "generate_job_name",
    "load_template",
    "manifest_file",
    "render_arguments",
    "render_env_block",
    "render_manifest",
]
