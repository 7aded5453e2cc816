# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Session credential service: token issuance, rotation and revocation."""

__version__ = "0.1.0"
