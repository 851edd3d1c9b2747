"""
inline-assist
"""

__version__ = "0.1.0"

from inline_assist.config import Settings
from inline_assist.main import BrowserSession, create_session

__all__ = ["BrowserSession", "Settings", "create_session", "__version__"]
