"""Pytest fixtures for idiomguard tests."""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest


@pytest.fixture
def temp_pyproject(tmp_path: Path) -> Path:
    """Create a temporary pyproject.toml file."""
    config_path: Path = tmp_path / "pyproject.toml"
    config_path.write_text(
        """
[tool.idiomguard]
include = ["models/**/*.json"]
exclude = ["**/generated_*.json"]
output_format = "json"
show_source = false
color = "never"
jobs = 4

[tool.idiomguard.rules]
len_zero = "deny"
pub_enum_variant_names = "warn"

[tool.idiomguard.rules.len_without_is_empty]
level = "forbid"
length_methods = ["len", "size"]
emptiness_method = "is_empty"

[tool.idiomguard.rules.enum_variant_names]
min_prefix_length = 4
"""
    )
    return config_path


@pytest.fixture
def empty_pyproject(tmp_path: Path) -> Path:
    """Create a pyproject.toml without [tool.idiomguard] section."""
    config_path: Path = tmp_path / "pyproject.toml"
    config_path.write_text(
        """
[project]
name = "test-project"
version = "0.1.0"
"""
    )
    return config_path


@pytest.fixture
def invalid_toml(tmp_path: Path) -> Path:
    """Create an invalid TOML file."""
    config_path: Path = tmp_path / "pyproject.toml"
    config_path.write_text("invalid [ toml content")
    return config_path


@pytest.fixture
def invalid_config(tmp_path: Path) -> Path:
    """Create a pyproject.toml with invalid idiomguard config."""
    config_path: Path = tmp_path / "pyproject.toml"
    config_path.write_text(
        """
[tool.idiomguard]
output_format = "invalid_format"
color = "maybe"

[tool.idiomguard.rules]
len_zero = "super_error"
"""
    )
    return config_path


def _len_impl_document(*, with_is_empty: bool) -> dict[str, Any]:
    methods: list[dict[str, Any]] = [{
        "kind": "function",
        "name": "len",
        "visibility": "public",
        "receiver": "by_ref",
        "return_type": "usize",
        "span": [4, 5, 4, 40],
    }]
    if with_is_empty:
        methods.append({
            "kind": "function",
            "name": "is_empty",
            "visibility": "public",
            "receiver": "by_ref",
            "return_type": "bool",
            "span": [5, 5, 5, 45],
        })
    return {
        "file": "src/stack.rs",
        "source": "pub struct Stack;\n\npub impl Stack {\n    pub fn len(&self) -> usize { 0 }\n}\n",
        "module": {
            "kind": "module",
            "name": "crate",
            "children": [{
                "kind": "impl",
                "name": "Stack",
                "visibility": "public",
                "span": [3, 1, 5, 2],
                "methods": methods,
            }],
        },
    }


@pytest.fixture
def len_model(tmp_path: Path) -> Path:
    """A model document with a public `len` and no `is_empty`."""
    path: Path = tmp_path / "stack.json"
    path.write_text(json.dumps(_len_impl_document(with_is_empty=False)), encoding="utf-8")
    return path


@pytest.fixture
def clean_model(tmp_path: Path) -> Path:
    """A model document with matching `len` and `is_empty`."""
    path: Path = tmp_path / "clean.json"
    path.write_text(json.dumps(_len_impl_document(with_is_empty=True)), encoding="utf-8")
    return path
