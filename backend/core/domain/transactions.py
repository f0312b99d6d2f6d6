"""
core.domain.transactions — Helpers for safe state transitions.

Provides utilities that wrap ``transaction.atomic``, ``select_for_update``
and ``transaction.on_commit`` into reusable patterns so that every app's
service layer follows the same concurrency-safe approach.

Design goals
------------
* State-transition reads always lock the row first (``select_for_update``)
  so that two requests racing on the same complaint are serialised.
* Side effects that must never undo a committed state change (thread
  messages, notifications) run *after* commit, each in its own atomic
  block, and their failures are logged rather than raised.

Usage::

    from core.domain.transactions import lock_for_update, run_after_commit

    with transaction.atomic():
        complaint = lock_for_update(Complaint, complaint_id)
        ...
        run_after_commit(
            "transfer thread message",
            CommunicationService.post_thread_message,
            complaint=complaint, ...
        )
"""

from __future__ import annotations

import logging
from typing import Any, Callable, TypeVar

from django.db import models, transaction

from core.domain.exceptions import NotFound

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=models.Model)


def lock_for_update(model_class: type[M], pk: Any) -> M:
    """
    Acquire a row-level lock on the given model instance.

    Convenience wrapper around ``select_for_update().get(pk=pk)``
    that must be called inside an ``atomic()`` block.

    Args:
        model_class: The Django model class.
        pk:          Primary key value.

    Returns:
        The locked model instance.

    Raises:
        NotFound: If no row with that PK exists.
    """
    try:
        return model_class.objects.select_for_update().get(pk=pk)
    except model_class.DoesNotExist:
        raise NotFound(f"{model_class.__name__} with pk={pk} does not exist.")


def run_best_effort(label: str, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
    """
    Execute ``fn`` inside its own ``transaction.atomic()`` block and
    swallow (but log) any exception it raises.

    Args:
        label:   Short description used in the log line.
        fn:      Callable to run.
        *args:   Positional arguments forwarded to ``fn``.
        **kwargs: Keyword arguments forwarded to ``fn``.

    Returns:
        Whatever ``fn`` returns, or ``None`` when it failed.
    """
    try:
        with transaction.atomic():
            return fn(*args, **kwargs)
    except Exception:
        logger.exception("Best-effort side effect failed: %s", label)
        return None


def run_after_commit(label: str, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> None:
    """
    Schedule ``run_best_effort(label, fn, ...)`` for when the current
    transaction commits.  Outside an atomic block it runs immediately.
    If the transaction rolls back, the side effect never runs.
    """
    transaction.on_commit(lambda: run_best_effort(label, fn, *args, **kwargs))
