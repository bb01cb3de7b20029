# SPDX-FileCopyrightText: 2025 Sequent Tech Inc <legal@sequentech.io>
#
# SPDX-License-Identifier: MIT

"""Developer workflow CLI over Jira and Git hosting providers."""

__version__ = "0.4.0"
