"""Registry of commands the ``/cmd`` endpoint may run.

Maps a short public name to the literal shell command executed for it.
Only names present here can ever reach the process runner.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping

DEFAULT_COMMANDS: Mapping[str, str] = MappingProxyType({
    "uptime": "uptime",
    "disk": "df -h",
    "memory": "free -m",
})


def build_registry(commands: Mapping[str, str] | None = None) -> Mapping[str, str]:
    """Return a read-only copy of ``commands`` (defaults if None)."""
    if commands is None:
        return DEFAULT_COMMANDS
    return MappingProxyType(dict(commands))


def resolve_command(registry: Mapping[str, str], name: str) -> str | None:
    """Look up the shell command for ``name``.

    Exact, case-sensitive match only.
    """
    if name not in registry:
        return None
    return registry[name]
