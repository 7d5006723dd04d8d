"""
ledger_api -- HTTP endpoints over the ledger services.

Usage:
    from ledger_api import create_app
    app = create_app()
"""

from ledger_api.app import create_app

__all__ = ["create_app"]
