# SPDX-FileCopyrightText: 2026 The orgstrap Authors
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Declarative org policy documents."""

from __future__ import annotations

from typing import Any

from .constants import ALLOWED_POLICY_MEMBER_DOMAINS


def allow_all_member_domains_policy(project_id: str) -> dict[str, Any]:
    """Policy letting any principal, including ``allUsers``, be granted
    IAM roles in *project_id*.

    The document is scoped to a single project and carries a single
    ``allowAll`` rule, overriding an inherited domain restriction.
    """
    return {
        "name": f"projects/{project_id}/policies/{ALLOWED_POLICY_MEMBER_DOMAINS}",
        "spec": {
            "rules": [
                {"allowAll": True},
            ],
        },
    }
