# SPDX-FileCopyrightText: 2026 The orgstrap Authors
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Typed views of the JSON that ``gcloud --format=json`` returns.

Only the fields orgstrap reads are declared; everything else in the
payload is ignored.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class _GcloudModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class ResourceParent(_GcloudModel):
    type: str
    id: str


class Project(_GcloudModel):
    project_id: str
    project_number: str | None = None
    lifecycle_state: str | None = None
    parent: ResourceParent | None = None

    @property
    def is_active(self) -> bool:
        return self.lifecycle_state == "ACTIVE"


class BillingInfo(_GcloudModel):
    billing_account_name: str | None = None
    billing_enabled: bool = False

    @property
    def billing_account_id(self) -> str | None:
        """``billingAccounts/XXXX`` reduced to the bare account id."""
        if not self.billing_account_name:
            return None
        return self.billing_account_name.rsplit("/", 1)[-1]


class ServiceAccount(_GcloudModel):
    email: str
    unique_id: str | None = None
    disabled: bool = False


class WorkloadIdentityPool(_GcloudModel):
    name: str
    state: str | None = None
    display_name: str | None = None

    @property
    def is_active(self) -> bool:
        return self.state == "ACTIVE"


class WorkloadIdentityProvider(_GcloudModel):
    name: str
    state: str | None = None
    attribute_condition: str | None = None

    @property
    def is_active(self) -> bool:
        return self.state == "ACTIVE"


class Organization(_GcloudModel):
    name: str
    display_name: str | None = None


class Service(_GcloudModel):
    """An entry of ``gcloud services list``."""

    name: str
    state: str | None = None

    @property
    def api(self) -> str:
        """``projects/123/services/iam.googleapis.com`` -> ``iam.googleapis.com``."""
        return self.name.rsplit("/", 1)[-1]
