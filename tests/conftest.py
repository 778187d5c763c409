"""Shared test fixtures for SourceLoupe."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from sourceloupe.engine.runner import clear_query_cache
from sourceloupe.languages import clear_cache, get_lang_config, parse_source

if TYPE_CHECKING:
    from collections.abc import Callable

    from tree_sitter import Node

    from sourceloupe.languages import LangConfig


@pytest.fixture(autouse=True)
def _clear_caches() -> None:
    """Clear language and query caches before each test to avoid cross-test pollution."""
    clear_cache()
    clear_query_cache()


@pytest.fixture()
def python_lang() -> LangConfig:
    """Tree-sitter Python grammar."""
    lang = get_lang_config(".py")
    assert lang is not None
    return lang


@pytest.fixture()
def parse_python(python_lang: LangConfig) -> Callable[[str], Node]:
    """Parse Python source and return the root node."""

    def _parse(source: str) -> Node:
        return parse_source(source, python_lang).root_node

    return _parse
