"""
In-memory cache of API query results, keyed by (path, params).
"""
from typing import Any, Callable, Dict, List, Optional, Tuple

QueryKey = Tuple[str, Tuple[Tuple[str, str], ...]]

GALLERY_PATH = "/gallery"


def make_query_key(path: str, params: Optional[Dict[str, Any]] = None) -> QueryKey:
    items = tuple(sorted((k, str(v)) for k, v in (params or {}).items() if v not in (None, "")))
    return path, items


class QueryCache:
    def __init__(self):
        self._entries: Dict[QueryKey, Any] = {}

    def get(self, key: QueryKey) -> Any:
        return self._entries.get(key)

    def set(self, key: QueryKey, value: Any) -> None:
        self._entries[key] = value

    def find_all(self, predicate: Callable[[QueryKey], bool]) -> List[QueryKey]:
        return [key for key in self._entries if predicate(key)]

    def update(self, key: QueryKey, updater: Callable[[Any], Any]) -> None:
        self._entries[key] = updater(self._entries.get(key))

    def invalidate(self, predicate: Callable[[QueryKey], bool]) -> None:
        for key in self.find_all(predicate):
            del self._entries[key]

    def clear(self) -> None:
        self._entries.clear()

    def gallery_keys(self) -> List[QueryKey]:
        return self.find_all(lambda key: key[0] == GALLERY_PATH)

    def prepend_gallery_record(self, record: Dict[str, Any]) -> None:
        """
        Put a newly created record at the top of every cached gallery list,
        ahead of the next refetch.
        """
        keywords = record.get("keywords")
        patched = {
            **record,
            "keywords": ", ".join(keywords) if isinstance(keywords, list) else keywords,
            "imagePaths": record.get("imageKeys", record.get("imagePaths", [])),
        }
        for key in self.gallery_keys():
            self.update(key, lambda old: [patched] + list(old or []))

    def remove_gallery_record(self, design_id: str) -> None:
        for key in self.gallery_keys():
            self.update(key, lambda old: [r for r in (old or []) if r.get("designId") != design_id])
