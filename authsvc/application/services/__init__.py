# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from .password_hashing import WerkzeugPasswordHasher
from .tokens import TokenService
from .user_directory import UserDirectory, log_cache_error

__all__ = ["TokenService", "UserDirectory", "WerkzeugPasswordHasher", "log_cache_error"]
