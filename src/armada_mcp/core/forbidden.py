"""Forbidden word and structure scanner.

Two tiers of banned terms: a universal list (always critical, matched
anywhere in the text, including inside longer words, and redacted in a
cleaned copy) and a per-corridor contextual list of words that break
character for that corridor (whole words only, high severity, never
redacted). Every literal is regex-escaped before it is compiled, so
configuration data cannot inject patterns.
"""

from __future__ import annotations

import logging
import re
from functools import lru_cache
from typing import Iterable, Optional

from .corridors import CORRIDORS
from .models import FlagType, ScanResult, Severity, ValidationFlag

logger = logging.getLogger(__name__)

BLOCK_CHAR = "█"

UNIVERSAL_FORBIDDEN: tuple[str, ...] = (
    "nigger", "nigga", "faggot", "faggots", "dyke", "tranny", "shemale",
    "cunt", "cunts", "fuck", "fucker", "fucking", "fucked", "fucks",
    "shit", "shits", "shitty", "bullshit",
    "bitch", "bitches", "bitchy",
    "whore", "whores",
    "slut", "sluts", "slutty",
    "rape", "rapist", "raped",
    "kill", "kills", "killing", "killed", "murder", "murderer", "murders",
    "terrorist", "terrorism",
    "child abuse", "pedophile", "pedophiles", "child porn",
    "drug recipe", "bomb recipe", "weapon manufacture",
)

EMPTY_LINE_RATIO = 0.3
CAPS_WORD_RATIO = 0.3
MIN_CONTENT_LENGTH = 50

_CAPS_WORD = re.compile(r"^[^a-z]*[A-Z]{3,}[^a-z]*$")


@lru_cache(maxsize=1024)
def word_pattern(word: str) -> re.Pattern[str]:
    """Whole-word, case-insensitive matcher for a literal word or phrase."""
    return re.compile(rf"\b{re.escape(word.strip())}\b", re.IGNORECASE)


@lru_cache(maxsize=1024)
def substring_pattern(word: str) -> re.Pattern[str]:
    """Case-insensitive matcher for a literal anywhere, even inside a word."""
    return re.compile(re.escape(word.strip()), re.IGNORECASE)


def find_line_number(content: str, word: str, whole_word: bool = True) -> Optional[int]:
    """1-based number of the first line containing ``word``."""
    pattern = word_pattern(word) if whole_word else substring_pattern(word)
    for number, line in enumerate(content.split("\n"), start=1):
        if pattern.search(line):
            return number
    return None


def redact(content: str, spans: Iterable[tuple[int, int]]) -> str:
    """Blank out every span with ``BLOCK_CHAR``, keeping the length of the text."""
    chars = list(content)
    for start, end in spans:
        chars[start:end] = BLOCK_CHAR * (end - start)
    return "".join(chars)


class ForbiddenScanner:
    """Scans content for universal and corridor-contextual forbidden terms."""

    def __init__(self, universal: Iterable[str] = UNIVERSAL_FORBIDDEN):
        self.universal = tuple(universal)
        self._corridor_forbidden: dict[str, list[str]] = {
            corridor_id: sorted(config.forbidden_words) for corridor_id, config in CORRIDORS.items()
        }

    def corridor_words(self, corridor: Optional[str]) -> list[str]:
        return list(self._corridor_forbidden.get(corridor or "", []))

    def add_corridor_forbidden(self, corridor: str, words: Iterable[str]) -> None:
        """Add contextual forbidden words for a corridor (creating it if needed)."""
        bucket = self._corridor_forbidden.setdefault(corridor, [])
        for word in words:
            if word not in bucket:
                bucket.append(word)

    def remove_corridor_forbidden(self, corridor: str, word: str) -> None:
        if corridor in self._corridor_forbidden:
            self._corridor_forbidden[corridor] = [w for w in self._corridor_forbidden[corridor] if w != word]

    def scan(self, content: str, corridor: Optional[str] = None) -> ScanResult:
        """Scan ``content``; the input string is never modified."""
        flags: list[ValidationFlag] = []
        spans: list[tuple[int, int]] = []

        for word in self.universal:
            matches = [m.span() for m in substring_pattern(word).finditer(content)]
            if not matches:
                continue
            flags.append(ValidationFlag(
                severity=Severity.CRITICAL,
                type=FlagType.FORBIDDEN,
                message=f'Universal forbidden word detected: "{word}"',
                word=word,
                line_number=find_line_number(content, word, whole_word=False),
            ))
            spans.extend(matches)
        cleaned = redact(content, spans)

        for word in self._corridor_forbidden.get(corridor or "", []):
            if word_pattern(word).search(content):
                flags.append(ValidationFlag(
                    severity=Severity.HIGH,
                    type=FlagType.FORBIDDEN,
                    message=f'Corridor-inappropriate word for {corridor}: "{word}"',
                    word=word,
                    line_number=find_line_number(content, word),
                ))

        flags.extend(self.check_structure(content))

        critical = sum(1 for f in flags if f.severity == Severity.CRITICAL)
        if critical:
            logger.info("Forbidden scan found %d critical term(s)", critical)

        return ScanResult(
            clean=critical == 0,
            flags=flags,
            cleaned_content=cleaned if cleaned != content else None,
            suggestions=self.generate_suggestions(flags, corridor),
        )

    def check_structure(self, content: str) -> list[ValidationFlag]:
        flags = []
        lines = content.split("\n")
        empty = sum(1 for line in lines if not line.strip())
        if empty > len(lines) * EMPTY_LINE_RATIO:
            flags.append(ValidationFlag(
                severity=Severity.LOW,
                type=FlagType.STRUCTURE,
                message="High percentage of empty lines detected",
            ))

        if len(content) < MIN_CONTENT_LENGTH:
            flags.append(ValidationFlag(
                severity=Severity.MEDIUM,
                type=FlagType.STRUCTURE,
                message="Content is very short - may lack sufficient detail",
            ))

        words = content.split()
        caps = [w for w in words if _CAPS_WORD.match(w)]
        if words and len(caps) > len(words) * CAPS_WORD_RATIO:
            flags.append(ValidationFlag(
                severity=Severity.LOW,
                type=FlagType.STRUCTURE,
                message="Excessive use of capital letters detected",
            ))
        return flags

    @staticmethod
    def generate_suggestions(flags: list[ValidationFlag], corridor: Optional[str] = None) -> list[str]:
        """One remediation hint per flag, in flag order."""
        suggestions = []
        for flag in flags:
            if flag.type == FlagType.FORBIDDEN and flag.severity == Severity.CRITICAL:
                suggestions.append(f'Remove or replace the forbidden word: "{flag.word}"')
            elif flag.type == FlagType.FORBIDDEN:
                suggestions.append(f"Consider using more culturally appropriate language for {corridor or 'this context'}")
            elif flag.type == FlagType.STRUCTURE:
                suggestions.append(f"Review content structure - {flag.message.lower()}")
            else:
                suggestions.append(f"Review content for {flag.type.value} issues")
        return suggestions
