"""
Lead list helpers for admin views: text filter and fixed-size pages.
"""
from dataclasses import dataclass
from typing import Any, Dict, List

LEADS_PAGE_SIZE = 10


@dataclass
class Page:
    items: List[Dict[str, Any]]
    page: int
    total_pages: int
    total: int


def filter_leads(leads: List[Dict[str, Any]], query: str) -> List[Dict[str, Any]]:
    """Case-insensitive match on name, email or message."""
    q = (query or "").strip().lower()
    if not q:
        return list(leads)
    return [
        lead for lead in leads
        if q in (lead.get("name") or "").lower()
        or q in (lead.get("email") or "").lower()
        or q in (lead.get("message") or "").lower()
    ]


def paginate(items: List[Dict[str, Any]], page: int, page_size: int = LEADS_PAGE_SIZE) -> Page:
    """1-based pages; out-of-range page numbers are clamped."""
    total_pages = max(1, -(-len(items) // page_size))
    current = min(max(1, page), total_pages)
    start = (current - 1) * page_size
    return Page(items=items[start:start + page_size], page=current, total_pages=total_pages, total=len(items))
