"""
Threat level extraction from db-ip.com markup.

The upstream page is not a versioned API, so extraction is an ordered list
of patterns tried first to last:

- primary: the "Estimated threat level ..." sentence followed by a
  ``badge-*`` span. Precise, but breaks if the wording changes.
- fallback: any ``badge-*`` span whose text is a known severity label.
  Survives layout changes as long as the vocabulary stays the same.

Additional patterns can be supplied to ``ThreatLevelExtractor`` without
touching the fetch or cache code.
"""
import logging
import re
from dataclasses import dataclass
from typing import Optional, Pattern, Sequence

logger = logging.getLogger(__name__)

SEVERITY_LABELS = ("Low", "Medium", "High", "Very High", "Critical")

# <span ... class="... badge-xxx ..." ...>
_BADGE_SPAN_OPEN = r"<span[^>]*class=['\"][^'\"]*badge-[^'\"]*['\"][^>]*>"


@dataclass(frozen=True)
class MarkupPattern:
    """A named regex whose first group captures the threat level text"""
    name: str
    regex: Pattern[str]

    def search(self, markup: str) -> Optional[str]:
        match = self.regex.search(markup)
        if not match or match.group(1) is None:
            return None
        return match.group(1).strip() or None


PRIMARY_PATTERN = MarkupPattern(
    name="threat_level_sentence",
    regex=re.compile(
        r"Estimated threat level for this IP address is\s*"
        + _BADGE_SPAN_OPEN
        + r"(.*?)</span>",
        re.IGNORECASE,
    ),
)

FALLBACK_PATTERN = MarkupPattern(
    name="severity_badge",
    regex=re.compile(
        _BADGE_SPAN_OPEN
        + r"(" + "|".join(re.escape(label) for label in SEVERITY_LABELS) + r")</span>",
        re.IGNORECASE,
    ),
)

DEFAULT_PATTERNS = (PRIMARY_PATTERN, FALLBACK_PATTERN)


class ThreatLevelExtractor:
    """Applies markup patterns in order and returns the first non-empty capture"""

    def __init__(self, patterns: Sequence[MarkupPattern] = DEFAULT_PATTERNS):
        if not patterns:
            raise ValueError("At least one markup pattern is required")
        self.patterns = tuple(patterns)

    def extract(self, markup: str) -> Optional[str]:
        """
        Extract the threat level token from upstream HTML.

        Args:
            markup: Raw HTML body

        Returns:
            Trimmed threat level text, or None if no pattern matched
        """
        if not markup:
            return None

        for pattern in self.patterns:
            value = pattern.search(markup)
            if value:
                logger.debug(f"Threat level matched by pattern '{pattern.name}': {value}")
                return value

        return None


_default_extractor = ThreatLevelExtractor()


def extract_threat_level(markup: str) -> Optional[str]:
    """Extract the threat level using the default patterns"""
    return _default_extractor.extract(markup)
