"""Build the parameter map passed to every triggered build."""

from __future__ import annotations

import os
from typing import Dict, Iterable, Mapping, Optional, Tuple

from dotenv import dotenv_values

from .errors import ConfigurationError

MASKED_VALUE = "[from-environment]"


def read_param_file(path: str) -> Dict[str, str]:
    """Read a flat KEY=VALUE file; lines without a value are rejected."""
    try:
        values = dotenv_values(path, interpolate=False)
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigurationError(f"Error: unable to parse params: {exc}.") from exc

    out: Dict[str, str] = {}
    for key, value in values.items():
        if value is None:
            raise ConfigurationError(
                f"Error: unable to parse params: invalid line '{key}' in {path}."
            )
        out[key] = value
    return out


def parse_params(tokens: Iterable[str]) -> Tuple[Dict[str, str], Dict[str, str]]:
    """Split param tokens into a literal layer and a file-sourced layer."""
    literal: Dict[str, str] = {}
    from_files: Dict[str, str] = {}
    for token in tokens:
        key, sep, value = token.partition("=")
        if sep:
            literal[key] = value
        elif not os.path.exists(key):
            raise ConfigurationError(
                f"Error: unable to parse params: invalid param '{key}'; "
                "must be KEY=VALUE or file path."
            )
        else:
            from_files.update(read_param_file(key))
    return literal, from_files


def build_trigger_params(
    tokens: Iterable[str],
    env_names: Iterable[str],
    environ: Optional[Mapping[str, str]] = None,
) -> Dict[str, str]:
    """Merge literal, then file, then environment params; later layers win."""
    environ = os.environ if environ is None else environ
    literal, from_files = parse_params(tokens)

    params: Dict[str, str] = {}
    params.update(literal)
    params.update(from_files)
    for name in env_names:
        if name not in environ:
            raise ConfigurationError(f"Error: param_from_env {name} is not set.")
        params[name] = environ[name]
    return params


def log_params(params: Mapping[str, str], env_names: Iterable[str]) -> None:
    """Print the params a build was started with, hiding environment-sourced values."""
    if not params:
        return
    masked = set(env_names)
    print("  with params:")
    for key, value in params.items():
        shown = MASKED_VALUE if key in masked else value
        print(f"  - {key}: {shown}")


__all__ = [
    "MASKED_VALUE",
    "read_param_file",
    "parse_params",
    "build_trigger_params",
    "log_params",
]
