#!/usr/bin/env python3
"""
Lightweight console client for inline-assist.

Streams one chat completion through the full pipeline (background relay,
ordered tab channel, delivery router) into a headless page, then prints
what the page ended up showing.

Usage:
    python console_client.py "Your prompt here"
    python console_client.py "Tell me about AI" llama3.2
    python console_client.py "Draft a reply" llama3.2 inline
"""

import asyncio
import os
import sys

from inline_assist.config import Settings
from inline_assist.content.api import get_models, request_completion
from inline_assist.content.dom import Document
from inline_assist.main import create_session
from inline_assist.utils.errors import InlineAssistError


def build_page(inline: bool) -> Document:
    """A blank page; inline runs get a focused textarea to type into."""
    document = Document(title="Console", url="https://console.local/")
    if inline:
        textarea = document.create_element("textarea", {"id": "prompt-box"})
        document.body.append_child(textarea)
        textarea.focus()
    return document


async def stream_chat(prompt: str, model: str | None, inline: bool, api_key: str) -> int:
    settings = Settings()
    url = settings.normalized_base_url

    async with create_session(settings) as session:
        page = session.open_tab(build_page(inline))

        try:
            if model is None:
                models = await get_models(page, api_key, url)
                if not models:
                    print("ERROR: server lists no models", file=sys.stderr)
                    return 1
                model = models[0].id or models[0].name

            print(f"\n{'=' * 80}")
            print(f"PROMPT: {prompt}")
            print(f"MODEL: {model}  MODE: {'inline' if inline else 'overlay'}")
            print(f"{'=' * 80}\n")

            await request_completion(
                page,
                api_key,
                url,
                {
                    "model": model,
                    "stream": True,
                    "messages": [{"role": "user", "content": prompt}],
                },
                is_openai=True,
                inline_mode=inline,
            )
        except InlineAssistError as e:
            print(f"\nERROR: {e.message}", file=sys.stderr)
            return 1

        await session.wait_idle()

        if inline:
            field = page.document.get_element_by_id("prompt-box")
            print(field.value if field is not None else "")
        else:
            content = page.overlay.content_area
            print(content.inner_html if content is not None else "(no output)")

        print(f"\n{'=' * 80}\n")
    return 0


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print("Usage: python console_client.py <prompt> [model] [inline]")
        print("\nExamples:")
        print('  python console_client.py "Hello, world!"')
        print('  python console_client.py "Tell me about AI" llama3.2')
        print('  python console_client.py "Draft a reply" llama3.2 inline')
        sys.exit(1)

    # Read the server API key from environment
    api_key = os.getenv("INLINE_ASSIST_API_KEY")
    if not api_key:
        print("ERROR: INLINE_ASSIST_API_KEY environment variable not set", file=sys.stderr)
        sys.exit(1)

    prompt = sys.argv[1]
    model = sys.argv[2] if len(sys.argv) > 2 else None
    inline = len(sys.argv) > 3 and sys.argv[3] == "inline"

    sys.exit(asyncio.run(stream_chat(prompt, model, inline, api_key)))
