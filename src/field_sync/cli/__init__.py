"""field-sync CLI.

Usage:
    fieldsync status                Show replica sync status
    fieldsync sync [--force]        Refresh the replica
    fieldsync resources [SEARCH]    Browse the replica
    fieldsync reports list          List queued reports
    fieldsync reports submit ID     Submit one report
    fieldsync cache install         Precache offline pages
    fieldsync serve                 Run the local API server
"""

from field_sync.cli.main import app, main

__all__ = ["app", "main"]
