"""
Async HTTP client for the showcase API.
Wraps every endpoint used by the public site and the admin dashboard.
"""
from typing import Any, Dict, List, Optional, Union
import logging

import httpx

from app.client.cache import QueryCache, make_query_key
from app.client.session import AdminSession

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Non-2xx response, or a response body the client cannot use."""

    def __init__(self, message: str, status_code: Optional[int] = None, payload: Any = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(body, dict):
        return body.get("message") or body.get("error") or f"HTTP {response.status_code}"
    return f"HTTP {response.status_code}"


class DecorApiClient:
    """
    Client for /api endpoints.

    Args:
        base_url: API root including the /api prefix, e.g. http://localhost:8000/api
        http: Optional preconfigured httpx.AsyncClient (tests pass one over ASGITransport)
        session: Admin session holding the bearer token
        cache: Query cache for list results
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8000/api",
        http: Optional[httpx.AsyncClient] = None,
        session: Optional[AdminSession] = None,
        cache: Optional[QueryCache] = None,
        timeout: float = 30.0,
    ):
        self._owns_http = http is None
        self.http = http or httpx.AsyncClient(base_url=base_url, timeout=timeout)
        self.session = session or AdminSession()
        self.cache = cache or QueryCache()

    async def aclose(self) -> None:
        if self._owns_http:
            await self.http.aclose()

    async def __aenter__(self) -> "DecorApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def _request(self, method: str, path: str, auth: bool = False, **kwargs) -> httpx.Response:
        headers = dict(kwargs.pop("headers", None) or {})
        if auth:
            token = self.session.get_token()
            if token is None:
                raise ApiError("Not logged in", status_code=401)
            headers["Authorization"] = f"Bearer {token}"

        try:
            response = await self.http.request(method, path, headers=headers, **kwargs)
        except httpx.TransportError as e:
            logger.error(f"{method} {path} failed: {str(e)}")
            raise ApiError(f"Network error: {str(e)}") from e

        if response.status_code == 401 and auth:
            self.session.logout("unauthorized")
        if not response.is_success:
            raise ApiError(_error_message(response), status_code=response.status_code, payload=response.content)
        return response

    # Admin session

    async def login(self, password: str) -> Dict[str, Any]:
        response = await self._request("POST", "/admin/login", json={"password": password})
        data = response.json()
        self.session.start(data["token"], int(data["expiresIn"]))
        self.session.arm_timer()
        return data

    async def logout(self) -> None:
        try:
            await self._request("POST", "/admin/logout")
        finally:
            self.session.logout()

    # Gallery

    async def list_gallery(self, category: Optional[str] = None, search: Optional[str] = None) -> List[Dict[str, Any]]:
        params = {k: v for k, v in {"category": category, "search": search}.items() if v}
        response = await self._request("GET", "/gallery", params=params)
        items = response.json()
        self.cache.set(make_query_key("/gallery", params), items)
        return items

    async def get_gallery_item(self, design_id: str) -> Dict[str, Any]:
        response = await self._request("GET", f"/gallery/{design_id}")
        return response.json()

    async def presign_upload(self, filename: str, content_type: str) -> Dict[str, str]:
        """
        Request a direct upload target.

        Raises:
            ApiError: On a failed request or when uploadUrl/objectKey is missing
        """
        response = await self._request(
            "POST", "/gallery/presign-upload", auth=True,
            json={"filename": filename, "contentType": content_type},
        )
        data = response.json()
        if not isinstance(data, dict) or not data.get("uploadUrl") or not data.get("objectKey"):
            raise ApiError("Invalid presign response", status_code=response.status_code, payload=data)
        return data

    async def create_gallery_item(
        self,
        title: str,
        category: str,
        keywords: Union[str, List[str]],
        image_keys: List[str],
    ) -> Dict[str, Any]:
        response = await self._request(
            "POST", "/gallery", auth=True,
            json={"title": title, "category": category, "keywords": keywords, "imageKeys": image_keys},
        )
        return response.json()

    async def delete_gallery_item(self, design_id: str) -> None:
        await self._request("DELETE", f"/gallery/{design_id}", auth=True)
        self.cache.remove_gallery_record(design_id)

    # Leads

    async def submit_contact(self, **fields) -> Dict[str, Any]:
        """Submit the public contact form. Field names are camelCase (eventDate, designId)."""
        response = await self._request("POST", "/contact", json=fields)
        return response.json()

    async def list_leads(self, search: Optional[str] = None) -> List[Dict[str, Any]]:
        params = {"search": search} if search else {}
        response = await self._request("GET", "/contact", auth=True, params=params)
        return response.json()

    async def close_lead(self, phone: str) -> Dict[str, Any]:
        response = await self._request("DELETE", "/contact", auth=True, params={"phone": phone})
        self.cache.invalidate(lambda key: key[0] == "/contact")
        return response.json()

    async def export_leads(self, search: Optional[str] = None) -> bytes:
        params = {"search": search} if search else {}
        response = await self._request("GET", "/contact/export", auth=True, params=params)
        return response.content
