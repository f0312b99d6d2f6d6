"""
core.domain — Shared domain utilities for cross-app service layers.

Modules
-------
exceptions         Domain-specific exceptions that map cleanly to HTTP responses.
exception_handler  DRF ``EXCEPTION_HANDLER`` translating them to responses.
notifications      Notification creation helper.
transactions       Helpers for ``select_for_update`` and after-commit side effects.

Usage from any app::

    from core.domain.exceptions import DomainError, StaleState
    from core.domain.notifications import NotificationService
    from core.domain.transactions import lock_for_update, run_after_commit
"""
