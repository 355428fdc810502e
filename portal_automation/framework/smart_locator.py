"""
================================================================================
Smart Locator
================================================================================

Turns symbolic locators into live element handles.

    - resolve_one(): one locator, optionally waiting for it to appear
    - resolve_first_of(): ordered candidate suffixes under a base locator,
      first match wins
    - exists() / exists_no_wait(): boolean checks
    - locator health: which candidate each base locator resolved through,
      for spotting screens whose markup drifted to a fallback shape

Before any element is handed out the blocking overlay must be gone; lookups
used by the waits themselves (lookup()) skip that check.

Misses are reported as a failed Resolution rather than raised, callers that
need the element call ``unwrap()``.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence

from loguru import logger

from portal_automation.framework.exceptions import (
    DriverError,
    ElementNotFoundError,
    NoCandidateMatchedError,
)
from portal_automation.framework.locators import Locator, as_locator
from portal_automation.framework.wait_helpers import wait_for_condition

if TYPE_CHECKING:
    from portal_automation.framework.browser_session import BrowserSession


@dataclass(frozen=True)
class Resolution:
    """
    Outcome of a resolution attempt.

    Attributes:
        locator: The locator that matched, or the one that was asked for
        element: Element handle when found
        index: Zero-based candidate index for resolve_first_of()
        error: The miss, when nothing was found
    """
    locator: str
    element: Any = None
    index: Optional[int] = None
    error: Optional[ElementNotFoundError] = None

    @property
    def found(self) -> bool:
        return self.error is None

    def __bool__(self) -> bool:
        return self.found

    def unwrap(self) -> Any:
        """
        Return the element, raising the recorded miss if there is none.

        Raises:
            ElementNotFoundError: (or NoCandidateMatchedError) on a miss
        """
        if self.error is not None:
            raise self.error
        return self.element


@dataclass
class LocatorHealth:
    """
    Tracks which candidate a base locator resolved through.

    Attributes:
        base_locator: Locator the candidates were appended to
        hits: Candidate index -> number of resolutions through it
        misses: Resolutions where no candidate matched
    """
    base_locator: str
    hits: Dict[int, int] = field(default_factory=dict)
    misses: int = 0

    @property
    def used_fallback(self) -> bool:
        return any(index > 0 for index in self.hits)


class SmartLocator:
    """
    Locator resolver bound to one BrowserSession.

    Usage:
        >>> resolution = session.locator.resolve_one("txtBatchDescription")
        >>> if resolution:
        ...     session.driver.click(resolution.element)

        >>> cell = session.locator.resolve_first_of(TEXT_BOX_CANDIDATES, grid.cell(1, 3))
        >>> cell.locator, cell.index
        ("//div[@id='grid']/.../tr[1]/td[3]/input", 2)
    """

    def __init__(self, session: "BrowserSession"):
        self._session = session
        self._health: Dict[str, LocatorHealth] = {}

    # ==================== Raw lookup ====================

    def lookup(self, locator) -> Any:
        """
        Query the driver once, without waiting for anything.

        Returns:
            The first matching element, or None
        """
        parsed = as_locator(locator)
        try:
            elements = self._session.driver.find_elements(parsed.kind, parsed.value)
        except DriverError as e:
            logger.debug(f"Lookup failed for {parsed}: {e}")
            return None
        return elements[0] if elements else None

    # ==================== Resolution ====================

    def resolve_one(self, locator, implicit_wait: bool = True) -> Resolution:
        """
        Resolve a locator to one element.

        Args:
            locator: Locator string or Locator
            implicit_wait: Poll up to the session's implicit wait for the
                           element to appear; otherwise query once

        Returns:
            Resolution holding the element, or the ElementNotFoundError
        """
        parsed: Locator = as_locator(locator)
        self._session.sync.wait_for_no_blocking_overlay()

        element = self.lookup(parsed)
        if element is None and implicit_wait:
            found: List[Any] = []

            def appeared() -> bool:
                hit = self.lookup(parsed)
                if hit is not None:
                    found.append(hit)
                return hit is not None

            settings = self._session.settings
            if wait_for_condition(
                appeared,
                timeout=settings.implicit_wait,
                interval=settings.implicit_wait_interval,
                clock=self._session.clock,
                description=f"element {parsed}",
            ):
                element = found[-1]

        if element is None:
            return Resolution(locator=parsed.raw, error=ElementNotFoundError(parsed.raw))
        return Resolution(locator=parsed.raw, element=element)

    def resolve_first_of(self, candidates: Sequence[str], base_locator) -> Resolution:
        """
        Try ``base_locator + candidate`` for each candidate, in order.

        Each candidate is queried once (no implicit wait). The first hit wins
        even if later candidates would also match.

        Args:
            candidates: Ordered locator suffixes ("" means the base itself)
            base_locator: Locator the suffixes are appended to

        Returns:
            Resolution with the matched locator and zero-based index, or a
            NoCandidateMatchedError
        """
        base = as_locator(base_locator)
        health = self._health.setdefault(base.raw, LocatorHealth(base_locator=base.raw))

        for index, suffix in enumerate(candidates):
            candidate = base.extend(suffix)
            resolution = self.resolve_one(candidate, implicit_wait=False)
            if resolution:
                health.hits[index] = health.hits.get(index, 0) + 1
                if index > 0:
                    logger.debug(f"Resolved {base} through candidate #{index} '{suffix}'")
                return Resolution(locator=candidate.raw, element=resolution.element, index=index)

        health.misses += 1
        logger.debug(f"No candidate matched under {base}: {list(candidates)}")
        return Resolution(
            locator=base.raw,
            error=NoCandidateMatchedError(base.raw, candidates),
        )

    def find(self, locator) -> Any:
        """
        Resolve with implicit wait and return the element.

        Raises:
            ElementNotFoundError: If the element never appears
        """
        return self.resolve_one(locator).unwrap()

    # ==================== Existence checks ====================

    def exists(self, locator) -> bool:
        """True if the element appears within the implicit wait."""
        return self.resolve_one(locator, implicit_wait=True).found

    def exists_no_wait(self, locator) -> bool:
        """True if the element is there right now (overlay permitting)."""
        return self.resolve_one(locator, implicit_wait=False).found

    # ==================== Health ====================

    @property
    def health(self) -> Dict[str, LocatorHealth]:
        return dict(self._health)

    def get_health_report(self) -> str:
        """
        Render resolution statistics as text.

        Base locators that resolved through a fallback candidate are listed
        first; those are the screens whose markup most likely changed.
        """
        lines = ["Locator Health Report", "=" * 40]
        entries = sorted(
            self._health.values(),
            key=lambda h: (not h.used_fallback, h.base_locator),
        )
        for entry in entries:
            marker = "FALLBACK" if entry.used_fallback else "ok"
            hits = ", ".join(f"#{i}: {n}" for i, n in sorted(entry.hits.items())) or "none"
            lines.append(f"[{marker}] {entry.base_locator} hits({hits}) misses={entry.misses}")
        return "\n".join(lines)


__all__ = [
    "Resolution",
    "LocatorHealth",
    "SmartLocator",
]
