"""Estimate how many browsers a test class will ask the hub for."""

from __future__ import annotations

from typing import Iterable, Optional, Sequence

from loguru import logger

from dockerdriver.browsers import ParameterKind, ParameterMeta, TestScope


def count_browsers_in_params(parameters: Iterable[ParameterMeta]) -> int:
    count = 0
    for param in parameters:
        if param.kind is ParameterKind.WEBDRIVER:
            count += 1
        elif param.kind is ParameterKind.BROWSER_LIST:
            count += param.size
    return count


def count_docker_browsers(signatures: Sequence[Sequence[ParameterMeta]]) -> int:
    """Sum browsers over every constructor and method signature of a test class."""
    return sum(count_browsers_in_params(parameters) for parameters in signatures)


def estimate_browser_count(scope: Optional[TestScope]) -> int:
    if scope is None:
        # Interactive mode
        count = 1
    else:
        count = count_docker_browsers(scope.signatures)
    logger.trace(f"Number of required Docker browser(s): {count}")
    return count
