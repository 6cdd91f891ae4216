# SPDX-FileCopyrightText: 2026 The orgstrap Authors
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Typed async wrapper around the ``gcloud`` CLI.

Every control-plane call orgstrap makes goes through
:class:`GcloudClient`.  Reads ask for ``--format=json`` and are
validated into the models in :mod:`orgstrap.models`; writes return
nothing.  A non-zero exit status becomes a :class:`GcloudError`.

:class:`DryRunGcloudClient` records the write commands instead of
running them, which is what ``orgstrap plan`` prints.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import re
import shlex
import tempfile
from typing import Any

import yaml

from .models import (
    BillingInfo,
    Organization,
    Project,
    ServiceAccount,
    Service,
    WorkloadIdentityPool,
    WorkloadIdentityProvider,
)

logger = logging.getLogger(__name__)

# HTTP status codes only count when gcloud reports them as a code; a bare
# "404" may be part of a project number or resource id.
_NOT_FOUND_MARKERS = re.compile(r"NOT_FOUND|not found|does not exist|\b(?:HTTP|code)[ =:]*404\b")
_ALREADY_EXISTS_MARKERS = re.compile(r"ALREADY_EXISTS|already exists|\b(?:HTTP|code)[ =:]*409\b")
_PERMISSION_MARKERS = re.compile(r"PERMISSION_DENIED|Permission denied|\b(?:HTTP|code)[ =:]*403\b")


class GcloudError(Exception):
    """A ``gcloud`` invocation failed."""

    def __init__(
        self,
        message: str,
        returncode: int | None = None,
        command: list[str] | None = None,
    ):
        super().__init__(message)
        self.returncode = returncode
        self.command = command or []

    def _matches(self, markers: re.Pattern[str]) -> bool:
        return markers.search(str(self)) is not None

    @property
    def not_found(self) -> bool:
        return self._matches(_NOT_FOUND_MARKERS)

    @property
    def already_exists(self) -> bool:
        return self._matches(_ALREADY_EXISTS_MARKERS)

    @property
    def permission_denied(self) -> bool:
        return self._matches(_PERMISSION_MARKERS)


def _error_message(stderr: str) -> str:
    """Pick the most useful line out of gcloud's stderr."""
    lines = [line.strip() for line in stderr.splitlines() if line.strip()]
    for line in lines:
        if line.startswith("ERROR:"):
            return line[len("ERROR:"):].strip()
    return lines[-1] if lines else "gcloud failed without output"


class GcloudClient:
    """Async client for the Google Cloud control plane via ``gcloud``."""

    def __init__(self, executable: str = "gcloud"):
        self._executable = executable

    async def _exec(self, argv: list[str]) -> tuple[int, str, str]:
        """Run *argv* and return ``(returncode, stdout, stderr)``."""
        proc = await asyncio.create_subprocess_exec(
            *argv,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        stdout, stderr = await proc.communicate()
        return proc.returncode or 0, stdout.decode(), stderr.decode()

    async def run(self, *args: str) -> str:
        """Run a gcloud command non-interactively and return its stdout.

        Raises:
            GcloudError: If gcloud exits non-zero.
        """
        argv = [self._executable, *args, "--quiet"]
        logger.debug("Running: %s", shlex.join(argv))
        returncode, stdout, stderr = await self._exec(argv)
        if returncode != 0:
            raise GcloudError(_error_message(stderr), returncode, argv)
        return stdout

    async def run_json(self, *args: str) -> Any:
        """Run a read command with ``--format=json`` and decode the result."""
        stdout = await self.run(*args, "--format=json")
        if not stdout.strip():
            return None
        try:
            return json.loads(stdout)
        except json.JSONDecodeError as e:
            raise GcloudError(f"Unparsable gcloud output: {e}", 0, list(args)) from e

    async def _exists(self, *args: str) -> bool:
        """Run a describe command; ``False`` when the resource is absent."""
        try:
            await self.run_json(*args)
        except GcloudError as e:
            if e.not_found:
                return False
            raise
        return True

    async def is_available(self) -> bool:
        """Check that the gcloud executable is installed and answers."""
        try:
            returncode, _out, _err = await self._exec([self._executable, "--version"])
        except OSError:
            return False
        return returncode == 0

    # -------------------------------------------------------------------------
    # Organizations and projects
    # -------------------------------------------------------------------------

    async def get_organization(self, organization_id: str) -> Organization:
        data = await self.run_json("organizations", "describe", organization_id)
        return Organization.model_validate(data)

    async def create_project(self, project_id: str, parent: str) -> None:
        """Create a project under ``folders/<id>`` or ``organizations/<id>``."""
        kind, parent_id = parent.split("/", 1)
        flag = "--folder" if kind == "folders" else "--organization"
        await self.run(
            "projects", "create", project_id,
            f"--name={project_id}",
            f"{flag}={parent_id}",
        )

    async def get_project(self, project_id: str) -> Project:
        data = await self.run_json("projects", "describe", project_id)
        return Project.model_validate(data)

    async def project_exists(self, project_id: str) -> bool:
        return await self._exists("projects", "describe", project_id)

    async def set_active_project(self, project_id: str) -> None:
        """Point the operator's gcloud configuration at *project_id*."""
        await self.run("config", "set", "project", project_id)

    # -------------------------------------------------------------------------
    # Billing
    # -------------------------------------------------------------------------

    async def get_billing_info(self, project_id: str) -> BillingInfo:
        data = await self.run_json("billing", "projects", "describe", project_id)
        return BillingInfo.model_validate(data or {})

    async def link_billing(self, project_id: str, billing_account: str) -> None:
        await self.run(
            "billing", "projects", "link", project_id,
            f"--billing-account={billing_account}",
        )

    # -------------------------------------------------------------------------
    # Services
    # -------------------------------------------------------------------------

    async def enable_services(self, project_id: str, apis: list[str]) -> None:
        await self.run("services", "enable", *apis, f"--project={project_id}")

    async def list_enabled_services(self, project_id: str) -> set[str]:
        data = await self.run_json("services", "list", "--enabled", f"--project={project_id}")
        return {Service.model_validate(item).api for item in data or []}

    # -------------------------------------------------------------------------
    # Cloud Storage
    # -------------------------------------------------------------------------

    async def create_bucket(self, project_id: str, bucket: str, location: str) -> None:
        await self.run(
            "storage", "buckets", "create", f"gs://{bucket}",
            f"--project={project_id}",
            f"--location={location}",
            "--uniform-bucket-level-access",
        )

    async def enable_bucket_versioning(self, bucket: str) -> None:
        await self.run("storage", "buckets", "update", f"gs://{bucket}", "--versioning")

    async def bucket_exists(self, bucket: str) -> bool:
        return await self._exists("storage", "buckets", "describe", f"gs://{bucket}")

    async def add_bucket_iam_binding(self, bucket: str, member: str, role: str) -> None:
        await self.run(
            "storage", "buckets", "add-iam-policy-binding", f"gs://{bucket}",
            f"--member={member}",
            f"--role={role}",
        )

    # -------------------------------------------------------------------------
    # IAM
    # -------------------------------------------------------------------------

    async def create_service_account(
        self, project_id: str, name: str, display_name: str
    ) -> None:
        await self.run(
            "iam", "service-accounts", "create", name,
            f"--project={project_id}",
            f"--display-name={display_name}",
        )

    async def get_service_account(self, project_id: str, email: str) -> ServiceAccount:
        data = await self.run_json(
            "iam", "service-accounts", "describe", email, f"--project={project_id}",
        )
        return ServiceAccount.model_validate(data)

    async def service_account_exists(self, project_id: str, email: str) -> bool:
        return await self._exists(
            "iam", "service-accounts", "describe", email, f"--project={project_id}",
        )

    async def add_service_account_iam_binding(
        self, project_id: str, email: str, member: str, role: str
    ) -> None:
        await self.run(
            "iam", "service-accounts", "add-iam-policy-binding", email,
            f"--project={project_id}",
            f"--role={role}",
            f"--member={member}",
        )

    async def add_project_iam_binding(self, project_id: str, member: str, role: str) -> None:
        await self.run(
            "projects", "add-iam-policy-binding", project_id,
            f"--member={member}",
            f"--role={role}",
            "--condition=None",
        )

    # -------------------------------------------------------------------------
    # Workload identity federation
    # -------------------------------------------------------------------------

    async def create_workload_identity_pool(
        self, project_id: str, pool: str, display_name: str
    ) -> None:
        await self.run(
            "iam", "workload-identity-pools", "create", pool,
            f"--project={project_id}",
            "--location=global",
            f"--display-name={display_name}",
        )

    async def get_workload_identity_pool(
        self, project_id: str, pool: str
    ) -> WorkloadIdentityPool:
        """Describe a pool; ``name`` is its canonical resource name."""
        data = await self.run_json(
            "iam", "workload-identity-pools", "describe", pool,
            f"--project={project_id}",
            "--location=global",
        )
        return WorkloadIdentityPool.model_validate(data)

    async def workload_identity_pool_exists(self, project_id: str, pool: str) -> bool:
        return await self._exists(
            "iam", "workload-identity-pools", "describe", pool,
            f"--project={project_id}",
            "--location=global",
        )

    async def create_oidc_provider(
        self,
        project_id: str,
        pool: str,
        provider: str,
        *,
        display_name: str,
        issuer_uri: str,
        attribute_mapping: str,
        attribute_condition: str,
    ) -> None:
        await self.run(
            "iam", "workload-identity-pools", "providers", "create-oidc", provider,
            f"--project={project_id}",
            "--location=global",
            f"--workload-identity-pool={pool}",
            f"--display-name={display_name}",
            f"--issuer-uri={issuer_uri}",
            f"--attribute-mapping={attribute_mapping}",
            f"--attribute-condition={attribute_condition}",
        )

    async def update_oidc_provider(
        self,
        project_id: str,
        pool: str,
        provider: str,
        *,
        attribute_mapping: str,
        attribute_condition: str,
    ) -> None:
        await self.run(
            "iam", "workload-identity-pools", "providers", "update-oidc", provider,
            f"--project={project_id}",
            "--location=global",
            f"--workload-identity-pool={pool}",
            f"--attribute-mapping={attribute_mapping}",
            f"--attribute-condition={attribute_condition}",
        )

    async def get_oidc_provider(
        self, project_id: str, pool: str, provider: str
    ) -> WorkloadIdentityProvider:
        data = await self.run_json(
            "iam", "workload-identity-pools", "providers", "describe", provider,
            f"--project={project_id}",
            "--location=global",
            f"--workload-identity-pool={pool}",
        )
        return WorkloadIdentityProvider.model_validate(data)

    async def oidc_provider_exists(self, project_id: str, pool: str, provider: str) -> bool:
        return await self._exists(
            "iam", "workload-identity-pools", "providers", "describe", provider,
            f"--project={project_id}",
            "--location=global",
            f"--workload-identity-pool={pool}",
        )

    # -------------------------------------------------------------------------
    # Artifact Registry
    # -------------------------------------------------------------------------

    async def create_artifact_repository(
        self, project_id: str, name: str, location: str, description: str = ""
    ) -> None:
        await self.run(
            "artifacts", "repositories", "create", name,
            f"--project={project_id}",
            f"--location={location}",
            "--repository-format=docker",
            f"--description={description}",
        )

    async def artifact_repository_exists(self, project_id: str, name: str, location: str) -> bool:
        return await self._exists(
            "artifacts", "repositories", "describe", name,
            f"--project={project_id}",
            f"--location={location}",
        )

    # -------------------------------------------------------------------------
    # Organization policy
    # -------------------------------------------------------------------------

    async def set_org_policy(self, document: dict[str, Any]) -> None:
        """Submit a declarative org policy document.

        ``gcloud org-policies set-policy`` only reads from a file, so the
        document is written to a temporary YAML file for the call.
        """
        fd, path = tempfile.mkstemp(prefix="orgstrap-policy-", suffix=".yaml")
        try:
            with os.fdopen(fd, "w") as file:
                yaml.safe_dump(document, file, sort_keys=False)
            await self.run("org-policies", "set-policy", path)
        finally:
            os.unlink(path)


class DryRunGcloudClient(GcloudClient):
    """Records write commands instead of executing anything.

    Existence checks answer "absent" so the plan shows every create;
    describe calls answer with placeholders that keep the pipeline
    moving.  ``commands`` holds the recorded command lines in order.
    """

    PROJECT_NUMBER_PLACEHOLDER = "PROJECT_NUMBER"

    def __init__(self, executable: str = "gcloud"):
        super().__init__(executable)
        self.commands: list[list[str]] = []
        self.policies: list[dict[str, Any]] = []
        self._enabled: dict[str, set[str]] = {}

    async def _exec(self, argv: list[str]) -> tuple[int, str, str]:
        self.commands.append(argv)
        return 0, "", ""

    async def _exists(self, *args: str) -> bool:
        return False

    async def is_available(self) -> bool:
        return True

    async def get_organization(self, organization_id: str) -> Organization:
        return Organization(name=f"organizations/{organization_id}")

    async def get_project(self, project_id: str) -> Project:
        return Project(
            project_id=project_id,
            project_number=self.PROJECT_NUMBER_PLACEHOLDER,
            lifecycle_state="ACTIVE",
        )

    async def get_billing_info(self, project_id: str) -> BillingInfo:
        return BillingInfo()

    async def enable_services(self, project_id: str, apis: list[str]) -> None:
        await super().enable_services(project_id, apis)
        self._enabled.setdefault(project_id, set()).update(apis)

    async def list_enabled_services(self, project_id: str) -> set[str]:
        return set(self._enabled.get(project_id, set()))

    async def get_service_account(self, project_id: str, email: str) -> ServiceAccount:
        return ServiceAccount(email=email)

    async def get_workload_identity_pool(
        self, project_id: str, pool: str
    ) -> WorkloadIdentityPool:
        return WorkloadIdentityPool(
            name=(
                f"projects/{self.PROJECT_NUMBER_PLACEHOLDER}"
                f"/locations/global/workloadIdentityPools/{pool}"
            ),
            state="ACTIVE",
        )

    async def get_oidc_provider(
        self, project_id: str, pool: str, provider: str
    ) -> WorkloadIdentityProvider:
        pool_info = await self.get_workload_identity_pool(project_id, pool)
        return WorkloadIdentityProvider(
            name=f"{pool_info.name}/providers/{provider}",
            state="ACTIVE",
        )

    async def set_org_policy(self, document: dict[str, Any]) -> None:
        self.policies.append(document)
        self.commands.append([
            self._executable, "org-policies", "set-policy",
            f"<policy for {document['name']}>", "--quiet",
        ])


_client: GcloudClient | None = None


def get_client() -> GcloudClient:
    """Process-wide client; ``ORGSTRAP_GCLOUD`` overrides the executable."""
    global _client
    if _client is None:
        _client = GcloudClient(os.environ.get("ORGSTRAP_GCLOUD", "gcloud"))
    return _client
