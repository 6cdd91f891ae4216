# SPDX-FileCopyrightText: 2026 The orgstrap Authors
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""CI variable and secret report.

The report lists every value an operator has to copy into GitHub,
grouped by where it goes: repository variables, per-environment
variables, and per-environment secrets.  Secret values are left blank.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ..config import BootstrapConfig
from .constants import ENVIRONMENT_SECRETS


@dataclass
class EnvironmentReport:
    """Variables and secret placeholders for one GitHub environment."""

    name: str
    variables: dict[str, str] = field(default_factory=lambda: dict[str, str]())
    secrets: dict[str, str] = field(default_factory=lambda: dict[str, str]())


@dataclass
class CiReport:
    repository_variables: dict[str, str]
    environments: list[EnvironmentReport]


def build_report(config: BootstrapConfig, provider_name: str) -> CiReport:
    """Assemble the report from the config and the captured provider name.

    Args:
        config: The bootstrap configuration.
        provider_name: Full provider resource name, derived from the
            queried pool name.
    """
    registry = (
        f"{config.region}-docker.pkg.dev/{config.shared_project_id}/{config.registry_name}"
    )
    repository_variables = {
        "GCP_ORGANIZATION_ID": config.organization_id,
        "GCP_REGION": config.region,
        "GCP_SHARED_PROJECT_ID": config.shared_project_id,
        "GCP_STATE_BUCKET": config.state_bucket,
        "GCP_WORKLOAD_IDENTITY_PROVIDER": provider_name,
        "GCP_ARTIFACT_REGISTRY": registry,
    }
    environments = [
        EnvironmentReport(
            name=env.name,
            variables={
                "GCP_PROJECT_ID": env.project_id,
                "GCP_SERVICE_ACCOUNT": env.service_account,
            },
            secrets={name: "" for name in ENVIRONMENT_SECRETS},
        )
        for env in config.environments()
    ]
    return CiReport(repository_variables, environments)


def render_text(report: CiReport) -> str:
    """Plain-text rendering, one ``NAME=value`` per line, grouped by destination."""
    lines = ["Repository variables:"]
    lines += [f"  {k}={v}" for k, v in report.repository_variables.items()]
    for env in report.environments:
        lines.append("")
        lines.append(f"Environment '{env.name}' variables:")
        lines += [f"  {k}={v}" for k, v in env.variables.items()]
        lines.append("")
        lines.append(f"Environment '{env.name}' secrets (generate values):")
        lines += [f"  {k}={v}" for k, v in env.secrets.items()]
    return "\n".join(lines) + "\n"


def to_dict(report: CiReport) -> dict[str, Any]:
    return {
        "repository": {"variables": dict(report.repository_variables)},
        "environments": {
            env.name: {"variables": dict(env.variables), "secrets": dict(env.secrets)}
            for env in report.environments
        },
    }
