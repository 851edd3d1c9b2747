"""Message passing between the background and content contexts."""

from inline_assist.channel.runtime import (
    ExtensionRuntime,
    Message,
    ReplyHandle,
    Sender,
    TabPort,
)

__all__ = ["ExtensionRuntime", "Message", "ReplyHandle", "Sender", "TabPort"]
