# SPDX-FileCopyrightText: 2026 The orgstrap Authors
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Pytest configuration for orgstrap integration tests.

These tests talk to a real organization through the installed gcloud
CLI.  They only run when ``ORGSTRAP_TEST_CONFIG`` points at a bootstrap
configuration for a disposable organization or folder.
"""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from orgstrap.config import BootstrapConfig, load_config
from orgstrap.gcloud_client import GcloudClient

# ---------------------------------------------------------------------------
# Live target
# ---------------------------------------------------------------------------

TEST_CONFIG = os.environ.get("ORGSTRAP_TEST_CONFIG")
GCLOUD = os.environ.get("ORGSTRAP_GCLOUD", "gcloud")


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    if TEST_CONFIG:
        return
    skip = pytest.mark.skip(reason="ORGSTRAP_TEST_CONFIG is not set")
    for item in items:
        if "integration" in Path(str(item.fspath)).parts:
            item.add_marker(skip)


@pytest.fixture
def live_config() -> BootstrapConfig:
    assert TEST_CONFIG is not None
    return load_config(TEST_CONFIG)


@pytest.fixture
async def live_gcloud() -> GcloudClient:
    client = GcloudClient(GCLOUD)
    if not await client.is_available():
        pytest.skip(f"{GCLOUD} is not available")
    return client
