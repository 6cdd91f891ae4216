# SPDX-FileCopyrightText: 2026 The orgstrap Authors
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""End-to-end tests of the bootstrap pipeline against the fake control plane."""

from __future__ import annotations

import pytest

from orgstrap.bootstrap import BootstrapService, list_steps, plan
from orgstrap.bootstrap.constants import (
    ENVIRONMENT_APIS,
    ENVIRONMENT_ROLES,
    SHARED_PROJECT_APIS,
    SHARED_PROJECT_ROLES,
    STATE_BUCKET_ROLE,
    WORKLOAD_IDENTITY_USER_ROLE,
)
from orgstrap.bootstrap.contexts import BootstrapContext
from orgstrap.bootstrap.identity import condition_accepts
from orgstrap.bootstrap.steps.projects import create_projects, wait_for_projects
from orgstrap.gcloud_client import GcloudError
from orgstrap.operations import OperationError, OperationReporter

from fakes import SHARED_PROJECT_NUMBER, FakeGcloudClient, no_sleep

POOL_NAME = (
    f"projects/{SHARED_PROJECT_NUMBER}/locations/global/workloadIdentityPools/github-actions"
)


async def _run(config, gcloud, progress=None):
    service = BootstrapService(config, gcloud, progress=progress, sleep=no_sleep)
    return await service.run()


def _first_call(gcloud: FakeGcloudClient, *prefix: str) -> int:
    for i, argv in enumerate(gcloud.calls):
        if tuple(argv[1 : 1 + len(prefix)]) == prefix:
            return i
    raise AssertionError(f"no call starting with {prefix}")


async def test_full_run_provisions_everything(config, fake_gcloud):
    ctx = await _run(config, fake_gcloud)

    assert set(fake_gcloud.projects) == set(config.project_ids)
    for project_id in config.project_ids:
        assert fake_gcloud.projects[project_id]["parent"] == {"type": "folder", "id": "345678901234"}
        assert fake_gcloud.billing[project_id] == config.billing_account

    assert fake_gcloud.active_project == config.shared_project_id
    assert set(SHARED_PROJECT_APIS) <= fake_gcloud.services[config.shared_project_id]
    assert fake_gcloud.buckets["gs://acme-platform-iac-state"] == {
        "project": config.shared_project_id,
        "location": "us-central1",
        "versioning": True,
    }
    assert fake_gcloud.service_accounts == set(config.service_account_emails)
    assert sorted(fake_gcloud.bucket_bindings) == sorted(
        ("gs://acme-platform-iac-state", f"serviceAccount:{email}", STATE_BUCKET_ROLE)
        for email in config.service_account_emails
    )
    assert fake_gcloud.repositories == {"containers"}
    for env in config.environments():
        assert set(ENVIRONMENT_APIS) <= fake_gcloud.services[env.project_id]

    assert ctx.pool_name == POOL_NAME
    assert ctx.report is not None
    assert len(ctx.created) > 0 and ctx.reused == []


async def test_pool_name_bound_is_the_queried_one(config, fake_gcloud):
    ctx = await _run(config, fake_gcloud)

    members = {member for _email, member, role in fake_gcloud.sa_bindings
               if role == WORKLOAD_IDENTITY_USER_ROLE}
    assert members == {f"principalSet://iam.googleapis.com/{POOL_NAME}/attribute.repository/my-org/*"}
    assert {email for email, _m, _r in fake_gcloud.sa_bindings} == set(config.service_account_emails)
    assert ctx.report.repository_variables["GCP_WORKLOAD_IDENTITY_PROVIDER"] == (
        f"{POOL_NAME}/providers/github-oidc"
    )


async def test_provider_condition_only_trusts_the_org(config, fake_gcloud):
    await _run(config, fake_gcloud)

    provider = fake_gcloud.providers["github-oidc"]
    assert provider["issuerUri"] == "https://token.actions.githubusercontent.com"
    condition = provider["attributeCondition"]
    assert condition_accepts(condition, "my-org/infra")
    assert not condition_accepts(condition, "other-org/infra")
    assert "attribute.repository=assertion.repository" in provider["attributeMapping"]


async def test_dev_and_prod_get_identical_roles(config, fake_gcloud):
    await _run(config, fake_gcloud)

    dev, prod = config.environments()
    dev_roles = sorted(r for p, m, r in fake_gcloud.project_bindings
                       if p == dev.project_id and m == f"serviceAccount:{dev.service_account}")
    prod_roles = sorted(r for p, m, r in fake_gcloud.project_bindings
                        if p == prod.project_id and m == f"serviceAccount:{prod.service_account}")
    assert len(ENVIRONMENT_ROLES) == 9
    assert dev_roles == prod_roles == sorted(ENVIRONMENT_ROLES)


async def test_shared_project_roles_for_both_identities(config, fake_gcloud):
    await _run(config, fake_gcloud)

    for email in config.service_account_emails:
        roles = {r for p, m, r in fake_gcloud.project_bindings
                 if p == config.shared_project_id and m == f"serviceAccount:{email}"}
        assert roles == set(SHARED_PROJECT_ROLES)


async def test_one_allow_all_policy_per_environment(config, fake_gcloud):
    await _run(config, fake_gcloud)

    assert len(fake_gcloud.policies) == 2
    names = [p["name"] for p in fake_gcloud.policies]
    assert names == [
        "projects/acme-platform-dev/policies/iam.allowedPolicyMemberDomains",
        "projects/acme-platform-prod/policies/iam.allowedPolicyMemberDomains",
    ]
    for policy in fake_gcloud.policies:
        assert policy["spec"]["rules"] == [{"allowAll": True}]


async def test_phases_run_in_order(config, fake_gcloud):
    await _run(config, fake_gcloud)

    order = [
        _first_call(fake_gcloud, "organizations", "describe"),
        _first_call(fake_gcloud, "projects", "create"),
        _first_call(fake_gcloud, "billing", "projects", "link"),
        _first_call(fake_gcloud, "config", "set", "project"),
        _first_call(fake_gcloud, "storage", "buckets", "create"),
        _first_call(fake_gcloud, "iam", "service-accounts", "create"),
        _first_call(fake_gcloud, "storage", "buckets", "add-iam-policy-binding"),
        _first_call(fake_gcloud, "iam", "workload-identity-pools", "create"),
        _first_call(fake_gcloud, "iam", "service-accounts", "add-iam-policy-binding"),
        _first_call(fake_gcloud, "artifacts", "repositories", "create"),
        _first_call(fake_gcloud, "org-policies", "set-policy"),
    ]
    assert order == sorted(order)


async def test_environment_grants_follow_api_enablement(config, fake_gcloud):
    await _run(config, fake_gcloud)

    for env in config.environments():
        enable = next(i for i, argv in enumerate(fake_gcloud.calls)
                      if argv[1:3] == ["services", "enable"] and f"--project={env.project_id}" in argv)
        grant = next(i for i, argv in enumerate(fake_gcloud.calls)
                     if argv[1:3] == ["projects", "add-iam-policy-binding"] and argv[3] == env.project_id)
        policy = next(i for i, argv in enumerate(fake_gcloud.calls)
                      if argv[1:3] == ["org-policies", "set-policy"] and i > grant)
        assert enable < grant < policy


async def test_rerun_creates_nothing(config, fake_gcloud):
    await _run(config, fake_gcloud)
    creates_after_first = len(fake_gcloud.creates())

    ctx = await _run(config, fake_gcloud)

    assert len(fake_gcloud.creates()) == creates_after_first
    assert ctx.created == []
    assert len(ctx.reused) == 12
    assert ctx.pool_name == POOL_NAME


async def test_waits_out_propagation_lag(config):
    gcloud = FakeGcloudClient(lag=3, numbers={config.shared_project_id: SHARED_PROJECT_NUMBER})
    progress = OperationReporter()
    ctx = await _run(config, gcloud, progress)

    assert ctx.pool_name == POOL_NAME
    waits = [m for level, m in progress.messages if level == "dim" and m.startswith("Waiting for")]
    assert any("project acme-platform-shared" in m for m in waits)
    assert any("service account" in m for m in waits)
    assert any("workload identity pool" in m for m in waits)


async def test_resumes_after_a_failed_run(config, fake_gcloud):
    fake_gcloud.fail("artifacts", "repositories", "create")
    with pytest.raises(OperationError, match="registry"):
        await _run(config, fake_gcloud)
    assert fake_gcloud.policies == []

    fake_gcloud.failures.clear()
    ctx = await _run(config, fake_gcloud)

    assert ctx.created == ["registry containers"]
    assert len(fake_gcloud.policies) == 2


async def test_failure_halts_before_later_steps(config, fake_gcloud):
    fake_gcloud.fail("iam", "service-accounts", "create")
    with pytest.raises(OperationError, match="ci-deployer-dev") as excinfo:
        await _run(config, fake_gcloud)
    assert "PERMISSION_DENIED" in str(excinfo.value)
    assert fake_gcloud.pools == {}
    assert fake_gcloud.bucket_bindings == []


async def test_project_pending_deletion_halts(config, fake_gcloud):
    fake_gcloud.projects[config.dev_project_id] = {
        "projectId": config.dev_project_id,
        "projectNumber": "5",
        "lifecycleState": "DELETE_REQUESTED",
    }
    with pytest.raises(OperationError, match="DELETE_REQUESTED"):
        await _run(config, fake_gcloud)
    assert "acme-platform-prod" not in fake_gcloud.projects


async def test_deleted_identity_pool_halts(config, fake_gcloud):
    fake_gcloud.pools["github-actions"] = {"name": POOL_NAME, "state": "DELETED"}
    with pytest.raises(OperationError, match="DELETED"):
        await _run(config, fake_gcloud)
    assert fake_gcloud.providers == {}
    assert fake_gcloud.sa_bindings == []


async def test_deleted_provider_halts(config, fake_gcloud):
    await _run(config, fake_gcloud)
    fake_gcloud.providers["github-oidc"]["state"] = "DELETED"
    with pytest.raises(OperationError, match="github-oidc.*DELETED"):
        await _run(config, fake_gcloud)


async def test_drifted_provider_condition_is_updated(config, fake_gcloud):
    await _run(config, fake_gcloud)
    fake_gcloud.providers["github-oidc"]["attributeCondition"] = (
        "assertion.repository.startsWith('other-org/')"
    )
    progress = OperationReporter()
    ctx = await _run(config, fake_gcloud, progress)

    condition = fake_gcloud.providers["github-oidc"]["attributeCondition"]
    assert condition_accepts(condition, "my-org/infra")
    assert not condition_accepts(condition, "other-org/infra")
    assert any("other-org" in m for level, m in progress.messages if level == "warning")
    assert ctx.created == []


async def test_wait_errors_name_the_resource(config, fake_gcloud):
    ctx = BootstrapContext(config=config, gcloud=fake_gcloud, sleep=no_sleep)
    await create_projects(ctx)
    fake_gcloud.fail("projects", "describe")

    with pytest.raises(OperationError, match="project 'acme-platform-shared'") as excinfo:
        await wait_for_projects(ctx)
    assert isinstance(excinfo.value.__cause__, GcloudError)
    assert excinfo.value.__cause__.permission_denied


async def test_billing_relinked_when_on_another_account(config, fake_gcloud):
    fake_gcloud.billing[config.shared_project_id] = "FFFFFF-FFFFFF-FFFFFF"
    progress = OperationReporter()
    await _run(config, fake_gcloud, progress)

    assert fake_gcloud.billing[config.shared_project_id] == config.billing_account
    assert any("relinking" in m for level, m in progress.messages if level == "warning")


async def test_domain_mismatch_is_a_warning(config, fake_gcloud):
    fake_gcloud.organization_display_name = "other.example"
    progress = OperationReporter()
    await _run(config, fake_gcloud, progress)
    assert any("other.example" in m for level, m in progress.messages if level == "warning")


async def test_unreadable_organization_stops_before_any_change(config, fake_gcloud):
    fake_gcloud.fail("organizations", "describe")
    with pytest.raises(OperationError, match="Cannot read organization"):
        await _run(config, fake_gcloud)
    assert fake_gcloud.projects == {}


async def test_projects_under_organization_without_folder(raw_config):
    from orgstrap.config import parse_config

    del raw_config["folder_id"]
    config = parse_config(raw_config)
    gcloud = FakeGcloudClient()
    await _run(config, gcloud)
    assert all(p["parent"]["type"] == "organization" for p in gcloud.projects.values())


async def test_current_report_reads_provider(config, fake_gcloud):
    await _run(config, fake_gcloud)
    service = BootstrapService(config, fake_gcloud)
    report = await service.current_report()
    assert report.repository_variables["GCP_WORKLOAD_IDENTITY_PROVIDER"] == (
        f"{POOL_NAME}/providers/github-oidc"
    )


async def test_current_report_without_bootstrap_fails(config, fake_gcloud):
    service = BootstrapService(config, fake_gcloud)
    with pytest.raises(OperationError, match="github-actions"):
        await service.current_report()


async def test_plan_lists_commands_without_executing(config):
    result = await plan(config)

    commands = [" ".join(argv[1:3]) for argv in result.commands]
    assert commands.count("projects create") == 3
    assert commands.count("org-policies set-policy") == 2
    assert not any(argv[1:2] == ["organizations"] for argv in result.commands)
    provider = result.report.repository_variables["GCP_WORKLOAD_IDENTITY_PROVIDER"]
    assert provider.startswith("projects/PROJECT_NUMBER/")


def test_step_listing_matches_phase_order():
    names = [s.name for s in list_steps()]
    assert names == [
        "check_organization",
        "create_projects",
        "wait_for_projects",
        "link_billing",
        "setup_shared_project",
        "create_service_accounts",
        "wait_for_service_accounts",
        "grant_state_bucket_access",
        "create_identity_pool",
        "capture_identity_pool",
        "bind_workload_identity_users",
        "setup_registry",
        "setup_environments",
        "collect_report",
    ]
