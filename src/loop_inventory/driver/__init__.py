"""
Browser driver layer.

The engine consumes the abstract ``Driver``; ``PlaywrightDriver`` and
``BrowserSession`` bind it to a real browser.
"""

from .base import CapturedResponse, DepthSignals, Driver, ResponsePredicate, ResponseRecorder
from .playwright_driver import PlaywrightDriver
from .session import BrowserSession

__all__ = [
    "CapturedResponse",
    "DepthSignals",
    "Driver",
    "ResponsePredicate",
    "ResponseRecorder",
    "PlaywrightDriver",
    "BrowserSession",
]
