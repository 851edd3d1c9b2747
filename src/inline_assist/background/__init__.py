"""Background context: endpoint access, streaming relay and request dispatch."""

from inline_assist.background.decoder import StreamEnd, TextDelta, WireDecoder
from inline_assist.background.dispatcher import ActionDispatcher
from inline_assist.background.relay import CompletionRelay
from inline_assist.background.scripting import InjectionResult, ScriptingHost

__all__ = [
    "ActionDispatcher",
    "CompletionRelay",
    "InjectionResult",
    "ScriptingHost",
    "StreamEnd",
    "TextDelta",
    "WireDecoder",
]
