"""
================================================================================
Page Objects
================================================================================

Page Object Model implementations for the SPARC console.

Each page class encapsulates:
    - LocatorSpecs for its targets
    - Page-specific actions
    - Verification methods

Author: Automation Team
License: MIT
================================================================================
"""

from .login_page import LoginPage, UserRole, get_credentials
from .service_node_sso_page import ServiceNodeSSOPage

__all__ = [
    "LoginPage",
    "UserRole",
    "get_credentials",
    "ServiceNodeSSOPage",
]
