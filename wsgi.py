"""
Flask CLI entry point.

Usage:
    flask --app wsgi portal-stats
    flask --app wsgi portal-reset
"""

from portal import create_app

app = create_app()
