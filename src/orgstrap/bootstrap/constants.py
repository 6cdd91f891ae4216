# SPDX-FileCopyrightText: 2026 The orgstrap Authors
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Fixed API sets, role lists and names used by the bootstrap steps."""

from __future__ import annotations

# APIs enabled on the shared project (state bucket, identities, registry)
SHARED_PROJECT_APIS: tuple[str, ...] = (
    "cloudresourcemanager.googleapis.com",
    "cloudbilling.googleapis.com",
    "serviceusage.googleapis.com",
    "iam.googleapis.com",
    "iamcredentials.googleapis.com",
    "sts.googleapis.com",
    "storage.googleapis.com",
    "artifactregistry.googleapis.com",
    "orgpolicy.googleapis.com",
)

# APIs enabled on each deployment project (dev, prod)
ENVIRONMENT_APIS: tuple[str, ...] = (
    "cloudresourcemanager.googleapis.com",
    "serviceusage.googleapis.com",
    "iam.googleapis.com",
    "compute.googleapis.com",
    "container.googleapis.com",
    "run.googleapis.com",
    "secretmanager.googleapis.com",
    "artifactregistry.googleapis.com",
    "orgpolicy.googleapis.com",
)

# Roles granted to an environment's identity on its own project.
# dev and prod get exactly this list.
ENVIRONMENT_ROLES: tuple[str, ...] = (
    "roles/compute.admin",
    "roles/container.admin",
    "roles/run.admin",
    "roles/secretmanager.admin",
    "roles/storage.admin",
    "roles/iam.serviceAccountAdmin",
    "roles/iam.serviceAccountUser",
    "roles/resourcemanager.projectIamAdmin",
    "roles/serviceusage.serviceUsageAdmin",
)

# Roles granted to both identities on the shared project
SHARED_PROJECT_ROLES: tuple[str, ...] = (
    "roles/artifactregistry.admin",
    "roles/storage.admin",
)

STATE_BUCKET_ROLE = "roles/storage.objectAdmin"
WORKLOAD_IDENTITY_USER_ROLE = "roles/iam.workloadIdentityUser"

GITHUB_OIDC_ISSUER = "https://token.actions.githubusercontent.com"

POOL_DISPLAY_NAME = "GitHub Actions"
PROVIDER_DISPLAY_NAME = "GitHub Actions OIDC"
REGISTRY_DESCRIPTION = "Container images built by CI"

ALLOWED_POLICY_MEMBER_DOMAINS = "iam.allowedPolicyMemberDomains"

# Secrets each GitHub environment needs; values are generated by the operator
ENVIRONMENT_SECRETS: tuple[str, ...] = (
    "PULUMI_CONFIG_PASSPHRASE",
)
