"""
sandbox-bootstrap — unit tests for config schema validation

File: tests/unit/config/test_schema.py
Last updated: 2026-10-18

Purpose
- Validate strict config schema behavior and structured errors.

What this test file should cover
- Defaults build successfully once paths are absolute.
- Unknown keys and invalid types are rejected with dotted paths.
- Every issue is reported at once.
- Derived paths (staging, storage) follow the prefix and home.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from sandbox_bootstrap.config.schema import (
    DEFAULT_CONFIG,
    BootstrapConfig,
    ConfigValidationError,
    PathsConfig,
    build_config,
    default_config,
    merge_config,
)


def _issue_paths(error: ConfigValidationError) -> list[str]:
    return [issue.path for issue in error.issues]


def test_defaults_build_into_typed_config() -> None:
    config = build_config(default_config())

    assert config.paths == PathsConfig(prefix=Path("usr"), home=Path("home"))
    assert config.storage.shared_root is None
    assert config.logging.log_to_stderr is True


def test_default_config_is_a_deep_copy() -> None:
    payload = default_config()
    payload["install"]["executable_prefixes"].append("sbin/")

    assert "sbin/" not in DEFAULT_CONFIG["install"]["executable_prefixes"]


def test_unknown_sections_and_fields_are_rejected() -> None:
    payload = merge_config(
        default_config(),
        {"paths": {"staging": "/tmp/x"}, "network": {"enabled": True}},
    )

    with pytest.raises(ConfigValidationError) as excinfo:
        build_config(payload)

    assert _issue_paths(excinfo.value) == ["network", "paths.staging"]


def test_all_issues_are_collected() -> None:
    payload = merge_config(
        default_config(),
        {
            "install": {"executable_prefixes": "bin/", "strict_done_outcome": 1},
            "logging": {"level": "chatty"},
            "storage": {"external_volumes": ["/mnt/sd", 7]},
        },
    )

    with pytest.raises(ConfigValidationError) as excinfo:
        build_config(payload)

    assert _issue_paths(excinfo.value) == [
        "install.executable_prefixes",
        "install.strict_done_outcome",
        "storage.external_volumes[1]",
        "logging.level",
    ]
    assert "invalid config" in str(excinfo.value)


@pytest.mark.parametrize("prefix", ["", "/", "usr/..", None])
def test_prefix_must_name_a_directory(prefix: object) -> None:
    payload = default_config()
    payload["paths"]["prefix"] = prefix

    with pytest.raises(ConfigValidationError) as excinfo:
        build_config(payload)

    assert "paths.prefix" in _issue_paths(excinfo.value)


def test_section_must_be_a_table() -> None:
    payload = default_config()
    payload["archive"] = "bootstrap.zip"

    with pytest.raises(ConfigValidationError) as excinfo:
        build_config(payload)

    assert _issue_paths(excinfo.value) == ["archive"]


def test_staging_and_storage_are_derived() -> None:
    paths = PathsConfig(prefix=Path("/data/files/usr"), home=Path("/data/files/home"))

    assert paths.staging == Path("/data/files/usr-staging")
    assert paths.storage == Path("/data/files/home/storage")


def test_for_root_lays_out_prefix_and_home(tmp_path: Path) -> None:
    config = BootstrapConfig.for_root(tmp_path)

    assert config.paths.prefix == tmp_path / "usr"
    assert config.paths.home == tmp_path / "home"
    assert config.install.strict_done_outcome is False


def test_merge_config_does_not_mutate_inputs() -> None:
    base = {"paths": {"prefix": "a", "home": "b"}}
    overlay = {"paths": {"prefix": "c"}}

    merged = merge_config(base, overlay)

    assert merged == {"paths": {"prefix": "c", "home": "b"}}
    assert base == {"paths": {"prefix": "a", "home": "b"}}
