# SPDX-FileCopyrightText: 2026 The orgstrap Authors
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Bootstrap pipeline: every provisioning phase, in order.

Importing this package registers all steps with the pipeline.
"""

from ...pipeline import Pipeline
from ..contexts import BootstrapContext

bootstrap_pipeline = Pipeline[BootstrapContext]("bootstrap")

# Import step modules so their decorators register with the pipeline.
from . import preflight as _  # noqa: F401, E402
from . import projects as _  # noqa: F401, E402
from . import billing as _  # noqa: F401, E402
from . import shared_project as _  # noqa: F401, E402
from . import service_accounts as _  # noqa: F401, E402
from . import workload_identity as _  # noqa: F401, E402
from . import registry as _  # noqa: F401, E402
from . import environments as _  # noqa: F401, E402
from . import ci_report as _  # noqa: F401, E402
