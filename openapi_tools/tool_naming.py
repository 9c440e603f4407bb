"""
Tool name synthesis

Names have the shape {project}-{controller}-{operation}, every segment in snake_case.
They are unique within one compilation run and never longer than the configured
maximum length.
"""

import logging
import re

from .config import DEFAULT_MAX_TOOL_NAME_LENGTH
from .models import Endpoint

logger = logging.getLogger(__name__)


def to_snake_case(text: str | None) -> str:
    """
    Convert text to snake_case

    Examples:
        createOrder -> create_order
        Order Controller -> order_controller
        get /users/{id} -> get_users_id
    """
    if not text:
        return ""
    snake = re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", text)
    snake = re.sub(r"[^a-zA-Z0-9]+", "_", snake).lower()
    return snake.strip("_")


def controller_segment(endpoint: Endpoint) -> str:
    """Endpoint controller in snake_case"""
    return to_snake_case(endpoint.controller) or "general"


def build_base_name(endpoint: Endpoint) -> str:
    project = to_snake_case(endpoint.project) or "default"
    operation = endpoint.operation_id or f"{endpoint.method} {endpoint.path}"
    return f"{project}-{controller_segment(endpoint)}-{to_snake_case(operation)}"


def ensure_unique(name: str, used_names: set[str]) -> str:
    """Append _1, _2, ... until the name is not in used_names."""
    candidate = name
    counter = 1
    while candidate in used_names:
        candidate = f"{name}_{counter}"
        counter += 1
    return candidate


def truncate_name(name: str, used_names: set[str], max_length: int = DEFAULT_MAX_TOOL_NAME_LENGTH) -> str:
    """
    Cut a name down to max_length characters

    Truncation can make two distinct names collide, so a truncated name that is
    already used is shortened further to make room for a numeric suffix.
    """
    if len(name) <= max_length:
        return name

    logger.warning(f"⚠️  Tool name '{name}' exceeds {max_length} characters and will be truncated")
    truncated = name[:max_length]
    counter = 1
    while truncated in used_names:
        suffix = f"_{counter}"
        truncated = name[: max_length - len(suffix)] + suffix
        counter += 1
    return truncated


def synthesize_tool_name(endpoint: Endpoint, used_names: set[str], max_length: int = DEFAULT_MAX_TOOL_NAME_LENGTH) -> str:
    """
    Build a unique, length-bounded tool name for an endpoint and record it in used_names

    Args:
        endpoint: Endpoint to name
        used_names: Names already handed out in this run (updated in place)
        max_length: Maximum tool name length

    Returns:
        Tool name
    """
    name = truncate_name(ensure_unique(build_base_name(endpoint), used_names), used_names, max_length)
    used_names.add(name)
    return name
