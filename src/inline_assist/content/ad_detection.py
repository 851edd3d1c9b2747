"""Heuristic for telling whether the focused element sits inside an advertisement."""

from inline_assist.content.dom import Element

AD_SELECTORS: tuple[str, ...] = (
    '[id*="ad"]',
    '[class*="ad"]',
    "[data-ad]",
    '[id*="banner"]',
    '[class*="banner"]',
    '[id*="sponsor"]',
    '[class*="sponsor"]',
    'iframe[src*="googlesyndication"]',
    'iframe[src*="doubleclick"]',
)

AD_SELECTOR = ", ".join(AD_SELECTORS)

MAX_ANCESTOR_LEVELS = 5


def is_likely_ad(element: Element | None, max_levels: int = MAX_ANCESTOR_LEVELS) -> bool:
    """
    Check the element and up to ``max_levels`` ancestors against ad patterns.

    Patterns are substring matches, so ``[class*="ad"]`` also hits "header"
    or "shadow". Returns False for a missing element.
    """
    node = element
    for _ in range(max_levels + 1):
        if node is None:
            return False
        if node.matches(AD_SELECTOR):
            return True
        node = node.parent
    return False
