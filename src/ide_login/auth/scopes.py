"""
Google OAuth Scopes for ide-login.

This module defines the OAuth scopes an IDE plugin typically requests when
signing users into Google Cloud.
"""

from typing import FrozenSet

# Needed to look up the signed-in user's email after login
USERINFO_EMAIL_SCOPE = "https://www.googleapis.com/auth/userinfo.email"

# Google Cloud scopes
CLOUD_PLATFORM_SCOPE = "https://www.googleapis.com/auth/cloud-platform"
APPENGINE_ADMIN_SCOPE = "https://www.googleapis.com/auth/appengine.admin"
PROJECTS_READONLY_SCOPE = "https://www.googleapis.com/auth/cloudplatformprojects.readonly"

CLOUD_SCOPES = [CLOUD_PLATFORM_SCOPE, APPENGINE_ADMIN_SCOPE, PROJECTS_READONLY_SCOPE]

SCOPES = [USERINFO_EMAIL_SCOPE] + CLOUD_SCOPES


def get_scopes() -> FrozenSet[str]:
    """
    Get the default set of OAuth scopes.

    Returns:
        Set of unique OAuth scopes.
    """
    return frozenset(SCOPES)
