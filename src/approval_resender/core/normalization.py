"""
Key normalization and small text helpers.

Pure functions shared by the sheet repositories, the attachment
fetcher and the recipient resolver.
"""

import re
from typing import Any, Iterable, List, Optional


_FILE_ID_BARE = re.compile(r"^[\w-]{20,}$")
_FILE_ID_IN_URL = re.compile(r"(?:id=|/d/|file/d/)([\w-]{20,})")
_HYPHEN_OR_SPACE = re.compile(r"[-\s]")


def cell_text(value: Any) -> str:
    """Render a sheet cell as trimmed text ('' for None)."""
    if value is None:
        return ""
    return str(value).strip()


def normalize_ulok(value: Any) -> str:
    """
    Canonical form of a ulok ticket number.

    Hyphens and whitespace are removed and the result is uppercased,
    so ``"ULOK-001 "``, ``"ulok001"`` and ``" U L O K 001"`` collapse
    to ``"ULOK001"``.
    """
    if value is None:
        return ""
    return _HYPHEN_OR_SPACE.sub("", str(value)).upper()


def normalize_scope(value: Any) -> str:
    """Canonical form of a lingkup (work scope) string."""
    return cell_text(value).lower()


def normalize_label(value: Any) -> str:
    """Canonical form of a header, branch or job title."""
    return cell_text(value).upper()


def extract_file_id(url: Any) -> Optional[str]:
    """
    Extract a Drive file id from a stored link.

    Accepts a bare id or a sharing URL carrying the id after
    ``id=``, ``/d/`` or ``file/d/``.

    Returns:
        The file id, or None when the link is empty or unrecognised.
    """
    text = cell_text(url)
    if not text:
        return None

    if _FILE_ID_BARE.match(text):
        return text

    match = _FILE_ID_IN_URL.search(text)
    return match.group(1) if match else None


def unique_emails(emails: Iterable[Any]) -> List[str]:
    """
    Trim, drop blanks and deduplicate emails.

    Comparison is case-insensitive; the first spelling seen is kept
    and input order is preserved.
    """
    seen = set()
    result: List[str] = []
    for email in emails:
        text = cell_text(email)
        if not text:
            continue
        key = text.lower()
        if key in seen:
            continue
        seen.add(key)
        result.append(text)
    return result
