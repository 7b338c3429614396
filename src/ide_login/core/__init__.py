"""
Core utilities package for ide-login.

This package provides shared configuration.
"""

from .config import (
    LoginConfig,
    get_login_config,
    reload_login_config,
)

__all__ = [
    "LoginConfig",
    "get_login_config",
    "reload_login_config",
]
