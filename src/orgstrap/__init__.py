# SPDX-FileCopyrightText: 2026 The orgstrap Authors
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""orgstrap - bootstrap a Google Cloud organization for CI deployments."""

__version__ = "0.1.0"
