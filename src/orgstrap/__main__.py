# SPDX-FileCopyrightText: 2026 The orgstrap Authors
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Entry point for running orgstrap as a module.

Usage:
    python -m orgstrap run --config orgstrap.yaml
"""

from .cli.main import cli

if __name__ == "__main__":
    cli()
