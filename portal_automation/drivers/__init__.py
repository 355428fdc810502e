"""
Browser driver adapters.

Only the abstract boundary is imported eagerly; concrete adapters pull in
their browser library on import.
"""

from portal_automation.drivers.base import BrowserDriver, Element, FrameReference

__all__ = [
    "BrowserDriver",
    "Element",
    "FrameReference",
]
