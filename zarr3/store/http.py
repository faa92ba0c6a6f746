from __future__ import annotations

from html.parser import HTMLParser
from typing import TYPE_CHECKING, List, Optional, Tuple
from urllib.parse import quote, unquote, urlsplit

import requests

from zarr3.abc.store import Store
from zarr3.errors import StoreError

if TYPE_CHECKING:
    from typing import Any
    from zarr3.common import BytesLike


class _LinkParser(HTMLParser):
    def __init__(self) -> None:
        super().__init__()
        self.links: List[str] = []

    def handle_starttag(self, tag: str, attrs: List[Tuple[str, Optional[str]]]) -> None:
        if tag == "a":
            for name, value in attrs:
                if name == "href" and value:
                    self.links.append(value)


def parse_directory_index(html: str) -> List[Tuple[str, bool]]:
    """Entries of an HTML directory index, as ``(name, is_directory)`` pairs.

    Only relative links naming a direct child are kept; parent links, absolute links, links
    with a query or fragment, and links into subdirectories are ignored.
    """
    parser = _LinkParser()
    parser.feed(html)
    parser.close()
    entries = {}
    for link in parser.links:
        parts = urlsplit(link)
        if parts.scheme or parts.netloc or parts.query or parts.fragment:
            continue
        is_dir = parts.path.endswith("/")
        name = unquote(parts.path.rstrip("/"))
        if name in ("", ".", "..") or "/" in name:
            continue
        entries[name] = is_dir
    return sorted(entries.items())


class HttpStore(Store):
    """Store reading and writing keys as resources below a base URL, using `requests`.

    ``get`` issues ``GET``, ``set`` ``PUT``, ``delete`` ``DELETE`` and ``exists`` ``HEAD``.
    A 404 response means the key does not exist. Listing a prefix fetches ``<prefix>/`` and
    parses the links of the HTML directory index the server returns. Requests are not retried.

    Parameters
    ----------
    base_url : str
    auth : optional
        Any authentication accepted by `requests`, e.g. a ``(user, password)`` tuple.
    session : requests.Session, optional
        Session to send requests with; a new one is created by default.
    timeout : float, optional
        Timeout in seconds for each request.
    read_only : bool, optional
    """

    supports_listing: bool = True

    def __init__(
        self,
        base_url: str,
        auth: Any = None,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None,
        read_only: bool = False,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.read_only = read_only
        self._owns_session = session is None
        self._session = requests.Session() if session is None else session
        if auth is not None:
            self._session.auth = auth

    def __str__(self) -> str:
        return self.base_url

    def __repr__(self) -> str:
        return f"HttpStore({self.base_url!r})"

    def __eq__(self, other: object) -> bool:
        return isinstance(other, type(self)) and self.base_url == other.base_url

    def close(self) -> None:
        if self._owns_session:
            self._session.close()

    def _url(self, key: str) -> str:
        return f"{self.base_url}/{quote(key)}" if key else f"{self.base_url}/"

    def _request(self, method: str, key: str, **kwargs: Any) -> requests.Response:
        url = self._url(key)
        try:
            return self._session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise StoreError(f"{method} {url} failed: {e}") from e

    @staticmethod
    def _raise_for_status(response: requests.Response) -> None:
        try:
            response.raise_for_status()
        except requests.HTTPError as e:
            raise StoreError(str(e)) from e

    def get(self, key: str) -> Optional[bytes]:
        response = self._request("GET", key)
        if response.status_code == 404:
            return None
        self._raise_for_status(response)
        return response.content

    def exists(self, key: str) -> bool:
        response = self._request("HEAD", key)
        if response.status_code == 404:
            return False
        self._raise_for_status(response)
        return True

    def set(self, key: str, value: BytesLike) -> None:
        self._check_writable()
        response = self._request("PUT", key, data=bytes(value))
        self._raise_for_status(response)

    def delete(self, key: str) -> bool:
        self._check_writable()
        response = self._request("DELETE", key)
        if response.status_code == 404:
            return False
        self._raise_for_status(response)
        return True

    def _list_entries(self, prefix: str) -> List[Tuple[str, bool]]:
        prefix = prefix.strip("/")
        response = self._request("GET", prefix + "/" if prefix else "")
        if response.status_code == 404:
            return []
        self._raise_for_status(response)
        return parse_directory_index(response.text)

    def list_dir(self, prefix: str) -> List[str]:
        return [name for name, _ in self._list_entries(prefix)]

    def _walk(self, prefix: str) -> List[str]:
        keys = []
        for name, is_dir in self._list_entries(prefix):
            key = f"{prefix}/{name}" if prefix else name
            if is_dir:
                keys.extend(self._walk(key))
            else:
                keys.append(key)
        return keys

    def list_prefix(self, prefix: str) -> List[str]:
        base = prefix.rpartition("/")[0]
        return sorted(key for key in self._walk(base) if key.startswith(prefix))

    def list(self) -> List[str]:
        return sorted(self._walk(""))
