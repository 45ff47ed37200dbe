"""
Options Module - Black Box Interface

Purpose: Turn a starlake command line into an Invocation and split --options
Interface: parse_invocation(), split_options(), build_arguments(), job_environment()
Hidden: Quote stripping, prefix matching, root path precedence
"""

from .options import (
    DEFAULT_ENV_PREFIX,
    DEFAULT_ROOT,
    DISPATCHER_VARIABLES,
    ROOT_VARIABLE,
    build_arguments,
    job_environment,
    parse_invocation,
    resolve_root,
    split_options,
    strip_quotes,
)

__all__ = [
    "DEFAULT_ENV_PREFIX",
    "DEFAULT_ROOT",
    "DISPATCHER_VARIABLES",
    "ROOT_VARIABLE",
    "build_arguments",
    "job_environment",
    "parse_invocation",
    "resolve_root",
    "split_options",
    "strip_quotes",
]
