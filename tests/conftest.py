# SPDX-FileCopyrightText: 2026 The orgstrap Authors
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Pytest configuration for orgstrap tests."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest
import yaml

from orgstrap import gcloud_client
from orgstrap.config import BootstrapConfig, parse_config

from fakes import SHARED_PROJECT_NUMBER, FakeGcloudClient

# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

VALID_CONFIG: dict[str, Any] = {
    "organization_id": "123456789012",
    "folder_id": "345678901234",
    "billing_account": "012345-6789AB-CDEF01",
    "domain": "example.com",
    "github_repository": "my-org/infra",
    "project_name": "acme-platform",
    "state_bucket": "acme-platform-iac-state",
    "pool_name": "github-actions",
    "provider_name": "github-oidc",
    "dev_service_account": "ci-deployer-dev",
    "prod_service_account": "ci-deployer-prod",
    "region": "us-central1",
    "wait": {"initial_delay": 0, "max_delay": 1, "timeout": 30},
}


@pytest.fixture
def raw_config() -> dict[str, Any]:
    return json.loads(json.dumps(VALID_CONFIG))


@pytest.fixture
def config(raw_config: dict[str, Any]) -> BootstrapConfig:
    return parse_config(raw_config)


@pytest.fixture
def config_file(tmp_path: Path, raw_config: dict[str, Any]) -> Path:
    path = tmp_path / "orgstrap.yaml"
    path.write_text(yaml.safe_dump(raw_config))
    return path


# ---------------------------------------------------------------------------
# Fake control plane
# ---------------------------------------------------------------------------


@pytest.fixture
def fake_gcloud(config: BootstrapConfig) -> FakeGcloudClient:
    return FakeGcloudClient(numbers={config.shared_project_id: SHARED_PROJECT_NUMBER})


@pytest.fixture
def installed_gcloud(fake_gcloud: FakeGcloudClient, monkeypatch: pytest.MonkeyPatch) -> FakeGcloudClient:
    """Make :func:`orgstrap.gcloud_client.get_client` return the fake."""
    monkeypatch.setattr(gcloud_client, "_client", fake_gcloud)
    return fake_gcloud
