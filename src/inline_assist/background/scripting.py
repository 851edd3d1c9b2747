"""
Execution of page-context functions inside a tab's frames.

The background cannot touch a page's DOM directly. It hands a function to the
scripting host, which runs it against each targeted frame's document and
collects one result per frame, top frame first.
"""

import asyncio
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any

from inline_assist.content.dom import Document
from inline_assist.utils.errors import InjectionError
from inline_assist.utils.logging import get_logger

logger = get_logger(__name__)

PageFunction = Callable[..., Any]


@dataclass(frozen=True)
class InjectionResult:
    frame_id: int
    result: Any


class ScriptingHost:
    """Registry of tab frames plus the injection entry point."""

    def __init__(self) -> None:
        self._frames: dict[int, list[Document]] = {}

    def register_frame(self, tab_id: int, document: Document) -> None:
        frames = self._frames.setdefault(tab_id, [])
        frames.append(document)
        frames.sort(key=lambda doc: doc.frame_id)

    def unregister_tab(self, tab_id: int) -> None:
        self._frames.pop(tab_id, None)

    def frames(self, tab_id: int) -> list[Document]:
        return list(self._frames.get(tab_id, []))

    async def execute_script(
        self,
        tab_id: int,
        func: PageFunction,
        args: Sequence[Any] = (),
        all_frames: bool = False,
    ) -> list[InjectionResult]:
        """
        Run ``func(document, *args)`` in the tab's frames.

        Args:
            tab_id: Target tab
            func: Page-context function; receives the frame document first
            args: Extra positional arguments
            all_frames: Run in every frame instead of only the top frame

        Returns:
            One InjectionResult per frame, top frame first

        Raises:
            InjectionError: If the tab is unknown or the function raised
        """
        frames = self._frames.get(tab_id)
        if not frames:
            raise InjectionError(f"No tab with id: {tab_id}", tab_id=tab_id)

        targets = frames if all_frames else frames[:1]
        results: list[InjectionResult] = []
        for document in targets:
            # Each frame runs on its own turn of the event loop.
            await asyncio.sleep(0)
            try:
                value = func(document, *args)
            except Exception as exc:
                raise InjectionError(
                    f"Script {getattr(func, '__name__', 'function')} failed: {exc}", tab_id=tab_id
                ) from exc
            results.append(InjectionResult(frame_id=document.frame_id, result=value))

        logger.debug(
            "Page script executed",
            extra={
                "script": getattr(func, "__name__", "function"),
                "frames": len(results),
                "target_tab": tab_id,
            },
        )
        return results
