"""
Stream context management using contextvars.

The completion relay binds the id of the stream it is driving at the start of
each relay invocation. Every invocation runs in its own listener task, so
concurrent streams each see only their own id, and JSONFormatter reports it
as ``request_id`` on every line logged while the stream is relayed.
"""

from contextvars import ContextVar

_stream_id_var: ContextVar[str | None] = ContextVar("stream_id", default=None)


def set_stream_id(stream_id: str) -> None:
    """
    Bind the current stream id.

    Args:
        stream_id: Id of the stream being relayed (``stream_<hex>``)
    """
    _stream_id_var.set(stream_id)


def get_stream_id() -> str | None:
    return _stream_id_var.get()
