"""
Substring search helpers for ILIKE filters.
"""

LIKE_ESCAPE = "\\"


def like_pattern(term: str) -> str:
    """Wrap a search term in % wildcards, escaping LIKE metacharacters in the term itself."""
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"
