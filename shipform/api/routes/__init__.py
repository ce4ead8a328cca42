"""FastAPI route modules.

Exports all route modules for inclusion in the main application.
"""

from shipform.api.routes import accounts, rates, rules, shipments

__all__ = [
    "accounts",
    "rates",
    "rules",
    "shipments",
]
