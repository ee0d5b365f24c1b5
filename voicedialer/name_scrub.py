"""
Name scrubbing for grammar entries.

Contact names and app labels are free text; the pronunciation engine only
accepts plain ASCII words, so they are rewritten before insertion.
"""

# Latin-1 Supplement letters (U+00C0..U+00FF) mapped to basic ASCII.
# Not all letters map well (Eth, Thorn); ' ' marks the unmappable ones.
LATIN1_LETTERS = "AAAAAAACEEEEIIIIDNOOOOO OUUUUYDsaaaaaaaceeeeiiiidnooooo ouuuuydy"
LATIN1_BASE = 0x00C0


def _fold_char(ch: str) -> str:
    if " " <= ch <= "~":
        return ch
    offset = ord(ch) - LATIN1_BASE
    if 0 <= offset < len(LATIN1_LETTERS):
        return LATIN1_LETTERS[offset]
    return " "


def _strip_parentheticals(name: str) -> str:
    while True:
        i = name.find("(")
        if i == -1:
            return name
        j = name.find(")", i)
        if j == -1:
            return name
        name = name[:i] + " " + name[j + 1:]


def _expand_dots(name: str) -> str:
    # Only the first '.' is examined each pass, so "a..b" stops at the first dot
    while True:
        i = name.find(".")
        if i == -1 or i + 1 >= len(name) or not name[i + 1].isalnum():
            return name
        name = name[:i] + " dot " + name[i + 1:]


def _has_ascii_alnum(name: str) -> bool:
    return any(("a" <= ch <= "z") or ("A" <= ch <= "Z") or ("0" <= ch <= "9")
               for ch in name)


def scrub_name(name: str) -> str:
    """
    Reformat a raw contact name or app label for the grammar.

    Args:
        name: Raw display name

    Returns:
        Scrubbed name, or "" if nothing pronounceable is left
    """
    name = name.replace("&", " and ")
    name = name.replace("@", " at ")
    name = _strip_parentheticals(name)
    name = "".join(_fold_char(ch) for ch in name)
    name = _expand_dots(name)
    name = name.strip()

    if not _has_ascii_alnum(name):
        return ""
    return name
