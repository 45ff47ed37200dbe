"""
Command line and --options parsing.

Orchestrators such as starlake-airflow call the dispatcher with a single
--options argument that mixes two kinds of settings:
    - SL_* variables (SL_ROOT, SL_DATASETS, ...) -> environment of the Job
    - anything else (date_min, date_max, ...)    -> starlake --options

Nothing in this module touches os.environ; environment assignments are
returned and passed forward explicitly.
"""

import logging
from typing import Dict, List, Mapping, Optional, Sequence

from slkube.errors import InvocationError
from slkube.modules.models import Invocation, ParsedOptions

logger = logging.getLogger("slkube.options")

DEFAULT_ENV_PREFIX = "SL_"
ROOT_VARIABLE = "SL_ROOT"
DEFAULT_ROOT = "/projects"
OPTIONS_FLAGS = ("-o", "--options")

# Settings read by the dispatcher itself; never forwarded to the Job
DISPATCHER_VARIABLES = ("SL_DISPATCH_MODE", "SL_DISPATCH_STRICT", "SL_LOCAL_COMMAND")

_QUOTES = ('"', "'")


def parse_invocation(argv: Sequence[str]) -> Invocation:
    """
    Turn a raw argument vector into an Invocation.

    The first argument is always the command. -o/--options consumes the
    next argument; every other argument is kept, in order, as-is.

    Raises:
        InvocationError: If no command is given or --options has no value
    """
    if not argv:
        raise InvocationError("No arguments provided. Usage: starlake <command> [args...]")

    command = argv[0]
    raw_options = None
    arguments: List[str] = []

    i = 1
    while i < len(argv):
        arg = argv[i]
        if arg in OPTIONS_FLAGS:
            if i + 1 >= len(argv):
                raise InvocationError(f"{arg} requires a value (k=v,k=v)")
            raw_options = argv[i + 1]
            i += 2
            continue
        arguments.append(arg)
        i += 1

    try:
        return Invocation(command=command, arguments=arguments, raw_options=raw_options)
    except ValueError as e:
        raise InvocationError(f"Invalid invocation: {e}") from e


def strip_quotes(value: str) -> str:
    """Remove one matching pair of surrounding single or double quotes."""
    if len(value) >= 2 and value[0] == value[-1] and value[0] in _QUOTES:
        return value[1:-1]
    return value


def split_options(raw_options: Optional[str], env_prefix: str = DEFAULT_ENV_PREFIX) -> ParsedOptions:
    """
    Partition a comma-separated key=value string.

    Keys starting with env_prefix become environment assignments, the rest
    are kept verbatim (minus quotes) as starlake options. Entries without
    '=' are forwarded as bare flags; empty entries are dropped.
    """
    env: Dict[str, str] = {}
    passthrough: List[str] = []

    if not raw_options:
        return ParsedOptions()

    for entry in raw_options.split(","):
        if not entry:
            continue
        if "=" not in entry:
            passthrough.append(entry)
            continue

        name, value = entry.split("=", 1)
        value = strip_quotes(value)

        if name.startswith(env_prefix):
            env[name] = value
        else:
            passthrough.append(f"{name}={value}")

    if env:
        logger.info(f"Environment assignments: {' '.join(f'{k}={v}' for k, v in env.items())}")
    if passthrough:
        logger.info(f"Starlake options: {' '.join(passthrough)}")

    return ParsedOptions(env=env, passthrough=passthrough)


def build_arguments(invocation: Invocation, parsed: ParsedOptions) -> List[str]:
    """
    Final starlake argument list.

    Native options such as --scheduledDate are already part of the
    positional arguments. --options is appended only when there are
    pass-through options left after splitting.
    """
    arguments = [invocation.command, *invocation.arguments]
    options_value = parsed.options_argument
    if options_value:
        arguments.extend(["--options", options_value])
    return arguments


def resolve_root(assignments: Mapping[str, str], environ: Mapping[str, str]) -> str:
    """SL_ROOT from the invocation, then the environment, then the default."""
    return assignments.get(ROOT_VARIABLE) or environ.get(ROOT_VARIABLE) or DEFAULT_ROOT


def job_environment(
    assignments: Mapping[str, str],
    environ: Mapping[str, str],
    env_prefix: str = DEFAULT_ENV_PREFIX,
) -> Dict[str, str]:
    """
    Variables to inline into the Job's env block.

    Prefix-matched variables of the dispatcher's own environment, overridden
    by the invocation's assignments. SL_ROOT is excluded because the
    template sets it through its own placeholder, and the dispatcher's own
    settings (DISPATCHER_VARIABLES) stay local.
    """
    merged = {k: v for k, v in environ.items() if k.startswith(env_prefix)}
    merged.update(assignments)
    for name in (ROOT_VARIABLE, *DISPATCHER_VARIABLES):
        merged.pop(name, None)
    return dict(sorted(merged.items()))
