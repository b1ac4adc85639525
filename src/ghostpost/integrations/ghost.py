"""Ghost CMS integration: config, Admin API client and CDN adapter.

The blog gateway and the asset pipeline only see the narrow methods
defined here (browse/add/edit/read/upload_image and upload), so either
side can be replaced with a fake in tests.
"""

from __future__ import annotations

import json
import logging
import os
import time
import urllib.error
import urllib.parse
import urllib.request
from typing import Any, Protocol

import jwt
from pydantic import BaseModel

from ghostpost.blog.models import UploadResult
from ghostpost.errors import ConfigurationError, ConflictError, NotFoundError, UpstreamError

logger = logging.getLogger(__name__)

DEFAULT_API_VERSION = "v5.0"


class GhostConfig(BaseModel):
    """Connection settings for one Ghost site."""

    url: str = ""
    admin_api_key: str = ""
    api_version: str = DEFAULT_API_VERSION
    timeout: float = 30.0

    @property
    def is_configured(self) -> bool:
        return bool(self.url and self.admin_api_key)

    @classmethod
    def from_env(cls) -> GhostConfig:
        """Create config from environment variables."""
        return cls(
            url=os.environ.get("GHOST_URL", ""),
            admin_api_key=os.environ.get("GHOST_ADMIN_API_KEY", ""),
        )


class AdminAPI(Protocol):
    """The subset of the Ghost Admin API the gateway relies on."""

    def browse(self, limit: str | int = "all") -> list[dict[str, Any]]: ...

    def add(self, post: dict[str, Any], source: str = "html") -> dict[str, Any]: ...

    def edit(self, post: dict[str, Any], source: str = "html") -> dict[str, Any]: ...

    def read(self, post_id: str) -> dict[str, Any] | None: ...

    def upload_image(
        self, data: bytes, filename: str, purpose: str = "image", content_type: str = "image/png"
    ) -> dict[str, Any]: ...


class GhostAPIClient:
    """Client for the Ghost Admin API.

    Handles JWT authentication and JSON/multipart requests via urllib.
    Raises :class:`ConfigurationError` at construction when the site URL
    or the ``id:secret`` admin key is missing.
    """

    def __init__(self, config: GhostConfig) -> None:
        if not config.url:
            raise ConfigurationError("Error in Ghost config: no url provided")
        if not config.admin_api_key:
            raise ConfigurationError("Error in Ghost config: admin_api_key not provided")
        key_id, sep, secret = config.admin_api_key.partition(":")
        if not sep or not key_id or not secret:
            raise ConfigurationError("Error in Ghost config: admin_api_key must be 'id:secret'")
        try:
            self._secret = bytes.fromhex(secret)
        except ValueError as exc:
            raise ConfigurationError("Error in Ghost config: admin_api_key secret is not hex") from exc

        self.config = config
        self._key_id = key_id
        self.base_url = config.url.rstrip("/")

    def _generate_token(self) -> str:
        """Generate a JWT token for Ghost Admin API authentication."""
        iat = int(time.time())
        payload = {
            "iat": iat,
            "exp": iat + 5 * 60,
            "aud": "/admin/",
        }
        return jwt.encode(
            payload,
            self._secret,
            algorithm="HS256",
            headers={"kid": self._key_id},
        )

    def _headers(self, content_type: str) -> dict[str, str]:
        return {
            "Authorization": f"Ghost {self._generate_token()}",
            "Content-Type": content_type,
            "Accept-Version": self.config.api_version,
        }

    def _send(self, req: urllib.request.Request) -> dict:
        logger.debug("%s %s", req.get_method(), req.full_url)
        try:
            with urllib.request.urlopen(req, timeout=self.config.timeout) as resp:
                raw = resp.read().decode("utf-8")
        except urllib.error.HTTPError as exc:
            raise _http_error(exc, req) from exc
        except urllib.error.URLError as exc:
            raise UpstreamError(f"Could not reach Ghost at {self.base_url}: {exc.reason}") from exc
        try:
            return json.loads(raw) if raw else {}
        except json.JSONDecodeError as exc:
            raise UpstreamError(f"Ghost returned invalid JSON for {req.full_url}") from exc

    def _request(
        self,
        method: str,
        path: str,
        data: dict | None = None,
        params: dict[str, str] | None = None,
    ) -> dict:
        """Make an authenticated request to the Ghost Admin API."""
        url = f"{self.base_url}/ghost/api/admin{path}"
        if params:
            url = f"{url}?{urllib.parse.urlencode(params)}"

        body = json.dumps(data).encode("utf-8") if data else None
        req = urllib.request.Request(
            url,
            data=body,
            method=method,
            headers=self._headers("application/json"),
        )
        return self._send(req)

    def _request_multipart(
        self,
        path: str,
        data: bytes,
        filename: str,
        content_type: str,
        fields: dict[str, str] | None = None,
    ) -> dict:
        """Upload a file via multipart form POST to the Ghost Admin API.

        Args:
            path: API endpoint path (e.g. "/images/upload/").
            data: Raw file bytes.
            filename: Name Ghost stores the file under.
            content_type: Media type of *data*.
            fields: Extra plain form fields (e.g. ``purpose``).

        Returns:
            Parsed JSON response from Ghost.
        """
        url = f"{self.base_url}/ghost/api/admin{path}"
        boundary = "----GhostpostUploadBoundary"

        body_parts: list[bytes] = []
        for name, value in (fields or {}).items():
            body_parts += [
                f"--{boundary}\r\n".encode(),
                f'Content-Disposition: form-data; name="{name}"\r\n\r\n'.encode(),
                f"{value}\r\n".encode(),
            ]
        disposition = (
            f'Content-Disposition: form-data; name="file";'
            f' filename="{filename}"\r\n'
        )
        body_parts += [
            f"--{boundary}\r\n".encode(),
            disposition.encode(),
            f"Content-Type: {content_type}\r\n\r\n".encode(),
            data,
            f"\r\n--{boundary}--\r\n".encode(),
        ]

        req = urllib.request.Request(
            url,
            data=b"".join(body_parts),
            method="POST",
            headers=self._headers(f"multipart/form-data; boundary={boundary}"),
        )
        return self._send(req)

    # ------------------------------------------------------------------
    # Posts
    # ------------------------------------------------------------------

    def browse(self, limit: str | int = "all") -> list[dict[str, Any]]:
        """List posts, newest first, with HTML bodies and tags."""
        result = self._request(
            "GET",
            "/posts/",
            params={"limit": str(limit), "formats": "html", "include": "tags"},
        )
        return result.get("posts", [])

    def add(self, post: dict[str, Any], source: str = "html") -> dict[str, Any]:
        """Create a post. ``source=html`` makes Ghost convert the html field."""
        result = self._request(
            "POST", "/posts/", {"posts": [post]}, params={"source": source}
        )
        return _first(result, "posts")

    def edit(self, post: dict[str, Any], source: str = "html") -> dict[str, Any]:
        """Edit a post in place.

        Ghost requires ``updated_at`` on every edit and answers 409 when
        it does not match the stored value.
        """
        fields = dict(post)
        post_id = fields.pop("id")
        params = {"source": source} if "html" in fields else None
        result = self._request(
            "PUT", f"/posts/{post_id}/", {"posts": [fields]}, params=params
        )
        return _first(result, "posts")

    def read(self, post_id: str) -> dict[str, Any] | None:
        """Fetch one post, or ``None`` if Ghost has no such id."""
        try:
            result = self._request(
                "GET",
                f"/posts/{urllib.parse.quote(post_id, safe='')}/",
                params={"formats": "html", "include": "tags"},
            )
        except NotFoundError:
            return None
        return _first(result, "posts")

    # ------------------------------------------------------------------
    # Images
    # ------------------------------------------------------------------

    def upload_image(
        self,
        data: bytes,
        filename: str,
        purpose: str = "image",
        content_type: str = "image/png",
    ) -> dict[str, Any]:
        """Upload image bytes to Ghost's storage and return its record."""
        result = self._request_multipart(
            "/images/upload/",
            data,
            filename,
            content_type,
            fields={"purpose": purpose},
        )
        return _first(result, "images")


class GhostCDN:
    """CDN adapter that stores assets through Ghost's image upload endpoint."""

    def __init__(self, api: AdminAPI) -> None:
        self._api = api

    def upload(
        self,
        data: bytes,
        filename: str,
        content_type: str,
        metadata: dict[str, Any] | None = None,
    ) -> UploadResult:
        image = self._api.upload_image(data, filename, purpose="image", content_type=content_type)
        url = image.get("url") if isinstance(image, dict) else None
        if not url:
            raise UpstreamError(f"Ghost did not return a URL for uploaded image {filename}")
        logger.info("Uploaded %s to Ghost (%d bytes)", filename, len(data))
        return UploadResult(url=url, id=filename, metadata=metadata)


def _first(result: dict, key: str) -> dict[str, Any]:
    items = result.get(key) or []
    if not items:
        raise UpstreamError(f"Ghost response contained no {key}")
    return items[0]


def _http_error(exc: urllib.error.HTTPError, req: urllib.request.Request) -> UpstreamError:
    """Map a Ghost HTTP error response to the matching exception."""
    detail = exc.reason
    try:
        body = json.loads(exc.read().decode("utf-8"))
        errors = body.get("errors") or []
        if errors:
            detail = errors[0].get("message") or detail
    except (ValueError, AttributeError, OSError):
        pass

    message = f"Ghost {req.get_method()} {req.full_url} failed ({exc.code}): {detail}"
    if exc.code == 404:
        return NotFoundError(message, status_code=exc.code)
    if exc.code == 409:
        return ConflictError(message, status_code=exc.code)
    return UpstreamError(message, status_code=exc.code)
