# SPDX-FileCopyrightText: 2026 The orgstrap Authors
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Organization bootstrap: public API re-exports."""

from .service import BootstrapService, Plan, list_steps, plan

__all__ = ["BootstrapService", "Plan", "list_steps", "plan"]
