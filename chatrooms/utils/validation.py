"""Input validation and content sanitization for chat rooms.

Pure functions only: no store access, no logging side effects. Usernames and
room ids are validated before anything touches the store; message content is
profanity-masked (URLs left intact) and HTML-escaped before it is persisted.
"""

from __future__ import annotations

import html
import re
from functools import lru_cache
from importlib import resources

from better_profanity import Profanity

from chatrooms.core.config import settings
from chatrooms.core.errors import ValidationAppError

MAX_USERNAME_LENGTH = 30
MIN_USERNAME_LENGTH = 3

# 3-30 chars, starts with a letter, single '-' or '_' only between alphanumerics
USERNAME_REGEX = re.compile(r"^[a-z](?:[a-z0-9]|[-_](?=[a-z0-9])){2,29}$", re.IGNORECASE)

ROOM_ID_REGEX = re.compile(r"^[a-z0-9]+$", re.IGNORECASE)

URL_REGEX = re.compile(r"https?://\S+")

MASK = "███"
_CENSOR_CHAR = "█"
_MASK_RUN = re.compile(f"{_CENSOR_CHAR}+")

# Added on top of the library dictionary
EXTRA_PROFANITY = ("chink",)

# Dictionary terms shorter than this only match whole words, never substrings
MIN_SUBSTRING_TERM_LENGTH = 4

# Separators collapsed and leetspeak undone before matching usernames
_SEPARATORS = re.compile(r"[\s_\-.]+")
_LEET = str.maketrans({"$": "s", "@": "a", "0": "o", "1": "i", "!": "i", "3": "e", "4": "a", "5": "s", "7": "t"})


def _configured_words(extra: str | None) -> list[str]:
    words = list(EXTRA_PROFANITY)
    if extra:
        words.extend(w.strip().lower() for w in extra.split(",") if w.strip())
    return words


@lru_cache(maxsize=4)
def _filter(extra: str | None) -> Profanity:
    profanity = Profanity()
    profanity.add_censor_words(_configured_words(extra))
    return profanity


@lru_cache(maxsize=4)
def _substring_terms(extra: str | None) -> frozenset[str]:
    wordlist = resources.files("better_profanity").joinpath("profanity_wordlist.txt")
    terms = {line.strip().lower() for line in wordlist.read_text(encoding="utf-8").splitlines()}
    terms.update(_configured_words(extra))
    return frozenset(t for t in terms if len(t) >= MIN_SUBSTRING_TERM_LENGTH and " " not in t)


def profanity_filter() -> Profanity:
    """Dictionary-backed filter with the configured extra words loaded."""
    return _filter(settings.app.profanity_words)


def is_profane_username(name: str | None) -> bool:
    """Check a username against the profanity dictionary.

    The name is lower-cased, separators are removed and simple leetspeak is
    undone. It is then checked word-wise by the filter and, for dictionary
    terms of four or more letters, as a substring, so compounds such as
    ``sh1t_lord`` are caught.

    Args:
        name: Raw username; ``None`` and empty strings are not profane.

    Returns:
        True when the name contains a blocked term.
    """
    if not name:
        return False
    normalized = _SEPARATORS.sub("", name.lower()).translate(_LEET)
    if profanity_filter().contains_profanity(normalized):
        return True
    return any(term in normalized for term in _substring_terms(settings.app.profanity_words))


def clean_profanity(text: str) -> str:
    """Replace each blocked word with a fixed three-block mask."""
    return _MASK_RUN.sub(MASK, profanity_filter().censor(text, _CENSOR_CHAR))


def filter_profanity_preserving_urls(content: str) -> str:
    """Mask profanity outside of URLs; URLs are copied through unchanged."""
    parts: list[str] = []
    last = 0
    for match in URL_REGEX.finditer(content):
        parts.append(clean_profanity(content[last:match.start()]))
        parts.append(match.group(0))
        last = match.end()
    parts.append(clean_profanity(content[last:]))
    return "".join(parts)


def escape_html(text: str) -> str:
    return html.escape(text, quote=True)


def sanitize_message(content: str) -> str:
    return escape_html(filter_profanity_preserving_urls(content))


def normalize_username(username: str | None) -> str:
    return (username or "").strip().lower()


def assert_valid_username(username: str | None) -> str:
    """Return the lower-cased username or raise ``ValidationAppError``."""
    normalized = normalize_username(username)
    if not normalized:
        raise ValidationAppError(code="username_required", message="Username is required")
    if not USERNAME_REGEX.fullmatch(normalized):
        raise ValidationAppError(
            code="invalid_username",
            message=(
                "Invalid username: use 3-30 letters/numbers; '-' or '_' allowed "
                "between characters; no spaces or symbols"
            ),
        )
    return normalized


def assert_valid_room_id(room_id: str | None) -> str:
    if not room_id:
        raise ValidationAppError(code="room_id_required", message="Room ID is required")
    if not ROOM_ID_REGEX.fullmatch(room_id):
        raise ValidationAppError(
            code="invalid_room_id",
            message="Invalid room ID format",
            details={"room_id": room_id[:64]},
        )
    return room_id
