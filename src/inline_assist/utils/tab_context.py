"""
Tab context management using contextvars for async-safe sender tracking.

The background dispatcher binds the sender's tab id at the message boundary.
Everything that runs for that message (relay, script injection, logging)
can read it back without passing it around.

Usage Pattern:
    1. ActionDispatcher.handle() calls set_tab_context(sender.tab_id)
    2. get_tab_context() retrieves it from anywhere in the call stack
    3. JSONFormatter auto-injects it into all logs as tab_id
"""

from contextvars import ContextVar

_tab_context_var: ContextVar[int | None] = ContextVar("tab_context", default=None)


def set_tab_context(tab_id: int) -> None:
    """
    Set the current sender tab id in context.

    Args:
        tab_id: Id of the tab whose message is being handled
    """
    _tab_context_var.set(tab_id)


def get_tab_context() -> int | None:
    """
    Get the current sender tab id from context.

    Returns:
        The stored tab id, or None outside of a dispatched message
    """
    return _tab_context_var.get()
