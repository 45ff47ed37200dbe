"""
Job manifest rendering.

The Job template is plain YAML carrying four literal placeholders. They are
substituted as text; the template is never interpreted by a template
engine, so Helm can ship any Job shape it likes as long as the tokens are
present:

    metadata:
      name: __JOB_NAME__
    ...
          args: __STARLAKE_ARGS__
          env:
            - name: SL_ROOT
              value: "__SL_ROOT__"
            __ENV_VARS__
"""

import json
import logging
import os
import re
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Mapping, Sequence

from slkube.errors import ConfigurationError

logger = logging.getLogger("slkube.manifest")

JOB_NAME_PLACEHOLDER = "__JOB_NAME__"
ARGS_PLACEHOLDER = "__STARLAKE_ARGS__"
ROOT_PLACEHOLDER = "__SL_ROOT__"
ENV_PLACEHOLDER = "__ENV_VARS__"

_SIMPLE_PLACEHOLDERS = re.compile(
    "|".join(re.escape(p) for p in (JOB_NAME_PLACEHOLDER, ARGS_PLACEHOLDER, ROOT_PLACEHOLDER))
)


def load_template(path: str) -> str:
    """
    Read the Job template.

    Raises:
        ConfigurationError: If the template does not exist
    """
    template_path = Path(path)
    if not template_path.is_file():
        raise ConfigurationError(
            f"Job template not found at {path}. "
            "Set JOB_TEMPLATE_PATH environment variable to specify a different location"
        )
    return template_path.read_text()


def render_arguments(arguments: Sequence[str]) -> str:
    """
    Render arguments as a JSON array usable as a YAML flow sequence.

    Backslashes, double quotes and every control or non-ASCII character are
    written as escapes, so the rendered value is plain ASCII that YAML accepts and
    each element survives as a single argv entry. Undecodable argv bytes
    (lone surrogates) are kept as \\u escapes as well.
    """
    return json.dumps(list(arguments))


def render_env_block(env: Mapping[str, str], indent: str) -> List[str]:
    """Render env entries as YAML list items at the given indentation."""
    lines = []
    for name, value in env.items():
        lines.append(f"{indent}- name: {name}\n")
        lines.append(f"{indent}  value: {json.dumps(value)}\n")
    return lines


def render_manifest(
    template: str,
    job_name: str,
    arguments: Sequence[str],
    root_path: str,
    env: Mapping[str, str],
) -> str:
    """
    Substitute the placeholders of a Job template.

    Each template line is handled once, so placeholder tokens appearing in
    arguments or env values are never substituted a second time. The
    __ENV_VARS__ line is replaced by the env entries (using its own
    indentation) or removed when there are none.
    """
    replacements = {
        JOB_NAME_PLACEHOLDER: job_name,
        ARGS_PLACEHOLDER: render_arguments(arguments),
        ROOT_PLACEHOLDER: root_path,
    }

    rendered: List[str] = []
    for line in template.splitlines(keepends=True):
        if ENV_PLACEHOLDER in line:
            indent = line[: len(line) - len(line.lstrip())]
            rendered.extend(render_env_block(env, indent))
            continue
        rendered.append(_SIMPLE_PLACEHOLDERS.sub(lambda m: replacements[m.group(0)], line))

    return "".join(rendered)


@contextmanager
def manifest_file(manifest: str) -> Iterator[str]:
    """Write a rendered manifest to a temp file that is removed on exit."""
    handle = tempfile.NamedTemporaryFile(
        "w", encoding="utf-8", prefix="starlake-job-", suffix=".yaml", delete=False
    )
    try:
        with handle:
            handle.write(manifest)
        logger.debug(f"Rendered manifest written to {handle.name}")
        yield handle.name
    finally:
        try:
            os.unlink(handle.name)
        except FileNotFoundError:
            pass
