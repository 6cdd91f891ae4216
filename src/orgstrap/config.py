# SPDX-FileCopyrightText: 2026 The orgstrap Authors
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Bootstrap configuration record.

The configuration is a flat YAML document validated into a frozen
:class:`BootstrapConfig`.  It is read once at the start of a run and
never mutated; values discovered at runtime (such as the workload
identity pool resource name) live on the run context instead.

Resolution order (highest priority first):
  1. explicit overrides passed to :func:`load_config` (CLI flags)
  2. ``ORGSTRAP_<FIELD>`` environment variables
  3. the YAML file
  4. field defaults

The three project ids default to ``<project_name>-shared``,
``<project_name>-dev`` and ``<project_name>-prod``.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

DEFAULT_CONFIG_PATH = "orgstrap.yaml"
ENV_PREFIX = "ORGSTRAP_"

_NUMERIC_RE = re.compile(r"^[0-9]+$")
_BILLING_RE = re.compile(r"^[0-9A-F]{6}-[0-9A-F]{6}-[0-9A-F]{6}$")
_PROJECT_ID_RE = re.compile(r"^[a-z][a-z0-9-]{4,28}[a-z0-9]$")
_BUCKET_RE = re.compile(r"^[a-z0-9][a-z0-9-]{1,61}[a-z0-9]$")
_POOL_ID_RE = re.compile(r"^[a-z0-9][a-z0-9-]{2,30}[a-z0-9]$")
_STEM_RE = re.compile(r"^[a-z][a-z0-9-]*[a-z0-9]$")
_REPOSITORY_RE = re.compile(r"^[A-Za-z0-9_.-]+/[A-Za-z0-9_.-]+$")
_DOMAIN_RE = re.compile(r"^(?=.{1,253}$)([a-z0-9-]{1,63}\.)+[a-z]{2,63}$")
_REGION_RE = re.compile(r"^[a-z]+-[a-z]+[0-9]+$")


class ConfigError(Exception):
    """Raised when the configuration is missing or invalid."""


class WaitSettings(BaseModel):
    """Poll-until-ready tuning for propagation wait points (seconds)."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    initial_delay: float = Field(default=2.0, ge=0)
    max_delay: float = Field(default=10.0, gt=0)
    timeout: float = Field(default=180.0, gt=0)

    @model_validator(mode="after")
    def _check_bounds(self) -> "WaitSettings":
        if self.max_delay > self.timeout:
            raise ValueError("max_delay must not exceed timeout")
        return self


@dataclass(frozen=True)
class Environment:
    """A deployment target: one project and the identity deploying to it."""

    name: str
    project_id: str
    service_account: str


class BootstrapConfig(BaseModel):
    """Validated, immutable bootstrap configuration."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    organization_id: str
    folder_id: str | None = None
    billing_account: str
    domain: str
    github_repository: str
    project_name: str
    shared_project_id: str
    dev_project_id: str
    prod_project_id: str
    state_bucket: str
    pool_name: str
    provider_name: str
    dev_service_account: str
    prod_service_account: str
    region: str
    registry_name: str = "containers"
    wait: WaitSettings = Field(default_factory=WaitSettings)

    @model_validator(mode="before")
    @classmethod
    def _derive_project_ids(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("project_name"):
            stem = data["project_name"]
            data = dict(data)
            for env in ("shared", "dev", "prod"):
                data.setdefault(f"{env}_project_id", f"{stem}-{env}")
        return data

    @field_validator("organization_id", "folder_id")
    @classmethod
    def _numeric(cls, v: str | None) -> str | None:
        if v is not None and not _NUMERIC_RE.match(v):
            raise ValueError("must be a numeric string")
        return v

    @field_validator("billing_account")
    @classmethod
    def _billing(cls, v: str) -> str:
        if not _BILLING_RE.match(v):
            raise ValueError("must look like 012345-6789AB-CDEF01")
        return v

    @field_validator("domain")
    @classmethod
    def _domain(cls, v: str) -> str:
        if not _DOMAIN_RE.match(v):
            raise ValueError("must be a lowercase DNS domain")
        return v

    @field_validator("github_repository")
    @classmethod
    def _repository(cls, v: str) -> str:
        if not _REPOSITORY_RE.match(v):
            raise ValueError("must be an 'owner/repo' pair")
        return v

    @field_validator("project_name")
    @classmethod
    def _stem(cls, v: str) -> str:
        if not _STEM_RE.match(v):
            raise ValueError("must be lowercase letters, digits and hyphens")
        return v

    @field_validator(
        "shared_project_id",
        "dev_project_id",
        "prod_project_id",
        "dev_service_account",
        "prod_service_account",
    )
    @classmethod
    def _project_like_id(cls, v: str) -> str:
        if not _PROJECT_ID_RE.match(v):
            raise ValueError(
                "must be 6-30 lowercase letters, digits or hyphens, "
                "start with a letter and not end with a hyphen"
            )
        return v

    @field_validator("state_bucket")
    @classmethod
    def _bucket(cls, v: str) -> str:
        if not _BUCKET_RE.match(v):
            raise ValueError("must be 3-63 lowercase letters, digits or hyphens")
        return v

    @field_validator("pool_name", "provider_name", "registry_name")
    @classmethod
    def _pool_like_id(cls, v: str) -> str:
        if not _POOL_ID_RE.match(v):
            raise ValueError("must be 4-32 lowercase letters, digits or hyphens")
        return v

    @field_validator("region")
    @classmethod
    def _region(cls, v: str) -> str:
        if not _REGION_RE.match(v):
            raise ValueError("must be a region name such as us-central1")
        return v

    @model_validator(mode="after")
    def _distinct(self) -> "BootstrapConfig":
        ids = [self.shared_project_id, self.dev_project_id, self.prod_project_id]
        if len(set(ids)) != len(ids):
            raise ValueError("shared, dev and prod project ids must differ")
        if self.dev_service_account == self.prod_service_account:
            raise ValueError("dev and prod service accounts must differ")
        return self

    # -------------------------------------------------------------------------
    # Derived values
    # -------------------------------------------------------------------------

    @property
    def github_org(self) -> str:
        return self.github_repository.split("/", 1)[0]

    @property
    def parent(self) -> str:
        """Resource-manager parent the projects are created under."""
        if self.folder_id:
            return f"folders/{self.folder_id}"
        return f"organizations/{self.organization_id}"

    @property
    def project_ids(self) -> list[str]:
        return [self.shared_project_id, self.dev_project_id, self.prod_project_id]

    def service_account_email(self, name: str) -> str:
        return f"{name}@{self.shared_project_id}.iam.gserviceaccount.com"

    @property
    def service_account_emails(self) -> list[str]:
        return [
            self.service_account_email(self.dev_service_account),
            self.service_account_email(self.prod_service_account),
        ]

    def environments(self) -> list[Environment]:
        """Deployment environments in bootstrap order (dev, then prod)."""
        return [
            Environment("dev", self.dev_project_id, self.service_account_email(self.dev_service_account)),
            Environment("prod", self.prod_project_id, self.service_account_email(self.prod_service_account)),
        ]


def _env_overrides(environ: dict[str, str]) -> dict[str, Any]:
    """Collect ``ORGSTRAP_<FIELD>`` overrides for top-level fields."""
    overrides: dict[str, Any] = {}
    for name in BootstrapConfig.model_fields:
        if name == "wait":
            continue
        value = environ.get(f"{ENV_PREFIX}{name.upper()}")
        if value:
            overrides[name] = value
    return overrides


def _format_validation_error(err: ValidationError) -> str:
    lines = []
    for e in err.errors():
        loc = ".".join(str(p) for p in e["loc"]) or "config"
        lines.append(f"  {loc}: {e['msg']}")
    return "Invalid configuration:\n" + "\n".join(lines)


def parse_config(raw: dict[str, Any]) -> BootstrapConfig:
    """Validate a raw mapping into a :class:`BootstrapConfig`.

    Raises:
        ConfigError: On validation failure, listing every problem.
    """
    try:
        return BootstrapConfig.model_validate(raw)
    except ValidationError as e:
        raise ConfigError(_format_validation_error(e)) from e


def load_config(
    path: str | os.PathLike[str] = DEFAULT_CONFIG_PATH,
    overrides: dict[str, Any] | None = None,
    environ: dict[str, str] | None = None,
) -> BootstrapConfig:
    """Load and validate the bootstrap configuration.

    Args:
        path: YAML file to read.
        overrides: Highest-priority values (e.g. from CLI flags).
        environ: Environment to read ``ORGSTRAP_*`` overrides from
            (defaults to ``os.environ``).

    Raises:
        ConfigError: If the file is missing, unparsable, or invalid.
    """
    config_path = Path(path)
    if not config_path.is_file():
        raise ConfigError(f"Configuration file not found: {config_path}")

    try:
        with open(config_path, "r") as file:
            data = yaml.safe_load(file) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Could not parse {config_path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"{config_path} must contain a mapping at the top level")

    # YAML turns unquoted numeric ids into ints
    for key in ("organization_id", "folder_id"):
        if isinstance(data.get(key), int):
            data[key] = str(data[key])

    merged = {**data, **_env_overrides(dict(os.environ if environ is None else environ))}
    merged.update(overrides or {})
    return parse_config(merged)
