"""
Small helpers shared by the agent, the router and the tool adapters.
"""

from __future__ import annotations

import re
import uuid
from typing import Any, Callable, Dict, Optional, TypeVar

T = TypeVar("T")

_WHITESPACE = re.compile(r"\s+")


def filter_tools(
    tools: Dict[str, T],
    predicate: Optional[Callable[[T], bool]] = None,
) -> Dict[str, T]:
    """
    Return the sub-mapping of `tools` whose values satisfy `predicate`.

    Without a predicate every entry is kept. The input mapping is never
    modified; a new dict is always returned.
    """
    if predicate is None:
        return dict(tools)
    return {name: tool for name, tool in tools.items() if predicate(tool)}


def to_snake_case(name: Optional[str]) -> str:
    """
    Normalize a display name into a tool-safe identifier.

    "Memory Agent" -> "memory_agent". Empty names get a random identifier.
    """
    if not name or not name.strip():
        return uuid.uuid4().hex[:12]
    return _WHITESPACE.sub("_", name.strip().lower())


def resolve_option(override: Any, default: Any, fallback: Any = None) -> Any:
    """
    Pick a setting by precedence: call-site override, agent default, fallback.

    `None` is the only value treated as unset.
    """
    if override is not None:
        return override
    if default is not None:
        return default
    return fallback
