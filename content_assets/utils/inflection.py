"""
String inflections used to derive registry keys, association names and permalinks.

    underscore("DiscussionThread") -> "discussion_thread"
    pluralize("discussion_thread") -> "discussion_threads"
    slugify("Hello, World!")       -> "hello-world"
"""

import re
import unicodedata

UNCOUNTABLE_WORDS = frozenset(
    ["equipment", "information", "rice", "money", "species", "series", "fish", "sheep", "news", "media", "data"]
)

IRREGULAR_PLURALS = {
    "person": "people",
    "man": "men",
    "woman": "women",
    "child": "children",
    "ox": "oxen",
    "quiz": "quizzes",
}

# Checked in order; the first matching pattern wins.
PLURAL_RULES = [
    (re.compile(r"(octop|vir)us$"), r"\1i"),
    (re.compile(r"(ax|test)is$"), r"\1es"),
    (re.compile(r"(matr|vert|ind)(?:ix|ex)$"), r"\1ices"),
    (re.compile(r"([^aeiouy]|qu)y$"), r"\1ies"),
    (re.compile(r"(?:([^f])fe|([lr])f)$"), r"\1\2ves"),
    (re.compile(r"(x|ch|ss|sh|s|z)$"), r"\1es"),
    (re.compile(r"([ti])um$"), r"\1a"),
    (re.compile(r"$"), "s"),
]

MAX_SLUG_LENGTH = 100


def underscore(name: str) -> str:
    """Convert a CamelCase class name to a snake_case key."""
    word = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1_\2", name)
    word = re.sub(r"([a-z\d])([A-Z])", r"\1_\2", word)
    return word.replace("-", "_").lower()


def pluralize(word: str) -> str:
    """Pluralize the last segment of a snake_case word."""
    if not word:
        return word

    head, sep, last = word.rpartition("_")
    lowered = last.lower()
    if lowered in UNCOUNTABLE_WORDS:
        return word
    if lowered in IRREGULAR_PLURALS:
        return f"{head}{sep}{IRREGULAR_PLURALS[lowered]}"

    for pattern, replacement in PLURAL_RULES:
        if pattern.search(last):
            return f"{head}{sep}{pattern.sub(replacement, last, count=1)}"
    return word


def slugify(text: str | None, max_length: int = MAX_SLUG_LENGTH) -> str:
    """Convert free text to a lowercase, hyphen-separated URL segment."""
    if not text:
        return ""

    text = unicodedata.normalize("NFKD", text).encode("ascii", "ignore").decode("ascii")
    text = text.lower()
    text = re.sub(r"[^a-z0-9\s_-]", "", text)
    text = re.sub(r"[\s_-]+", "-", text).strip("-")

    if len(text) > max_length:
        truncated = text[:max_length]
        last_hyphen = truncated.rfind("-")
        text = truncated[:last_hyphen] if last_hyphen > 0 else truncated
    return text
