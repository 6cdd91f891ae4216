# SPDX-FileCopyrightText: 2026 The orgstrap Authors
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Workload identity federation strings: mapping, condition, principal set.

The provider accepts a GitHub OIDC token only when its ``repository``
claim starts with ``<org>/``.  :func:`condition_accepts` evaluates that
condition locally, mirroring what the security token service does.
"""

from __future__ import annotations

import re

# google.* and attribute.* names -> OIDC token claims
ATTRIBUTE_MAPPING: dict[str, str] = {
    "google.subject": "assertion.sub",
    "attribute.actor": "assertion.actor",
    "attribute.repository": "assertion.repository",
    "attribute.repository_owner": "assertion.repository_owner",
}

_STARTS_WITH_RE = re.compile(
    r"""^assertion\.(?P<claim>[a-z_]+)\.startsWith\((?P<q>['"])(?P<prefix>[^'"]*)(?P=q)\)$"""
)


def attribute_mapping_arg() -> str:
    """Render :data:`ATTRIBUTE_MAPPING` as gcloud's ``k=v,k=v`` argument."""
    return ",".join(f"{k}={v}" for k, v in ATTRIBUTE_MAPPING.items())


def attribute_condition(github_org: str) -> str:
    """CEL condition accepting any repository owned by *github_org*."""
    return f"assertion.repository.startsWith('{github_org}/')"


def condition_accepts(condition: str, repository: str) -> bool:
    """Evaluate a ``startsWith`` repository condition for a claimed repository.

    Raises:
        ValueError: If *condition* is not a single ``startsWith`` test on
            the ``repository`` claim.
    """
    match = _STARTS_WITH_RE.match(condition.strip())
    if not match or match.group("claim") != "repository":
        raise ValueError(f"Unsupported attribute condition: {condition}")
    return repository.startswith(match.group("prefix"))


def principal_set(pool_name: str, github_org: str) -> str:
    """Member string for every repository of *github_org* under the pool.

    *pool_name* must be the canonical resource name returned by the
    control plane (``projects/<number>/locations/global/workloadIdentityPools/<id>``).
    """
    return (
        f"principalSet://iam.googleapis.com/{pool_name}"
        f"/attribute.repository/{github_org}/*"
    )


def provider_resource_name(pool_name: str, provider: str) -> str:
    return f"{pool_name}/providers/{provider}"


def service_account_member(email: str) -> str:
    return f"serviceAccount:{email}"
