"""Name and label transforms for inferred models and fields."""

import re

# Runs of letters in any script, or runs of digits
_CHUNK_PATTERN = re.compile(r"[^\W\d_]+|\d+")


def _split_case(chunk: str) -> list[str]:
    # "heroImage" -> hero, Image; "HTMLBlock" -> HTML, Block; caseless scripts stay whole
    words: list[str] = []
    start = 0
    for i in range(1, len(chunk)):
        prev, cur = chunk[i - 1], chunk[i]
        nxt = chunk[i + 1] if i + 1 < len(chunk) else ""
        if (prev.islower() and cur.isupper()) or (
            prev.isupper() and cur.isupper() and nxt.islower()
        ):
            words.append(chunk[start:i])
            start = i
    words.append(chunk[start:])
    return words


def split_words(value: str) -> list[str]:
    """Split an identifier into words on case, digit and separator boundaries."""
    return [word for chunk in _CHUNK_PATTERN.findall(value) for word in _split_case(chunk)]


def start_case(value: str) -> str:
    """Convert an identifier to a display label.

    Examples:
        >>> start_case("markdown_content")
        'Markdown Content'
        >>> start_case("heroImage")
        'Hero Image'
    """
    return " ".join(word[:1].upper() + word[1:] for word in split_words(value))


def snake_case(value: str) -> str:
    """Convert an identifier or file name to snake_case.

    Examples:
        >>> snake_case("Site-Config")
        'site_config'
    """
    return "_".join(word.lower() for word in split_words(value))


def get_unique_name(name: str, other_names: list[str]) -> str:
    """Get ``name``, or ``name_<n>`` with the lowest n not in ``other_names``."""
    if name not in other_names:
        return name
    idx = 1
    while f"{name}_{idx}" in other_names:
        idx += 1
    return f"{name}_{idx}"
