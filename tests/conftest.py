"""Root conftest for the ACMEFLOW test suite."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest
import yaml

# ---------------------------------------------------------------------------
# Make ``src/`` importable without installing the package
# ---------------------------------------------------------------------------
_SRC = str(Path(__file__).resolve().parent.parent / "src")
if _SRC not in sys.path:
    sys.path.insert(0, _SRC)


# ---------------------------------------------------------------------------
# Config data shared by multiple test modules
# ---------------------------------------------------------------------------


@pytest.fixture()
def minimal_config_data() -> dict:
    """Return a dict touching every configuration section."""
    return {
        "issuance": {
            "timeout_seconds": 60,
            "delay_after_dns_records_confirmed_seconds": 2,
            "poll_interval_seconds": 0.5,
        },
        "dns": {"resolvers": ["192.0.2.53"], "port": 53, "lifetime_seconds": 3},
        "logging": {"level": "DEBUG", "format": "json"},
    }


@pytest.fixture()
def tmp_config_file(tmp_path: Path, minimal_config_data: dict) -> Path:
    """Write *minimal_config_data* to a temp YAML file and return its path."""
    cfg = tmp_path / "config.yaml"
    cfg.write_text(
        yaml.safe_dump(minimal_config_data, default_flow_style=False, sort_keys=False),
        encoding="utf-8",
    )
    return cfg


# ---------------------------------------------------------------------------
# Config singleton cleanup, autouse so every test gets a fresh slate
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def fresh_config():
    """Reset the AcmeflowConfig singleton before and after every test."""
    from acmeflow.config.acmeflow_config import AcmeflowConfig

    AcmeflowConfig.reset()
    yield
    AcmeflowConfig.reset()
