"""Incremental URI construction for service requests."""

from urllib.parse import quote, urlsplit, urlunsplit


class RequestUriBuilder:
    """
    Mutable absolute URI assembled from a base plus path segments and query.

    Usage:
        uri = RequestUriBuilder()
        uri.reset("https://contoso.appconfig.io")
        uri.append_path("/kv/")
        uri.append_path("test_key")
        uri.append_query("label", "test_label")
        str(uri)  # https://contoso.appconfig.io/kv/test_key?label=test_label
    """

    def __init__(self, uri: str | None = None):
        self.scheme = ""
        self.host = ""
        self.port: int | None = None
        self.path = ""
        self._query: list[str] = []
        if uri:
            self.reset(uri)

    def reset(self, uri: "str | RequestUriBuilder") -> None:
        """Replace every component with those of ``uri``."""
        parts = urlsplit(str(uri))
        self.scheme = parts.scheme
        self.host = parts.hostname or ""
        self.port = parts.port
        self.path = parts.path
        self._query = [p for p in parts.query.split("&") if p]

    @property
    def query(self) -> str:
        return "&".join(self._query)

    def append_path(self, value: str, escape: bool = True) -> None:
        if not value:
            return
        if escape:
            value = quote(value, safe="/")
        if self.path.endswith("/") and value.startswith("/"):
            value = value[1:]
        elif not self.path.endswith("/") and not value.startswith("/"):
            value = "/" + value
        self.path += value

    def append_query(self, name: str, value: str, escape: bool = True) -> None:
        if escape:
            name = quote(name, safe="")
            value = quote(str(value), safe="")
        self._query.append(f"{name}={value}")

    def has_query(self, name: str) -> bool:
        prefix = f"{name}="
        return any(p == name or p.startswith(prefix) for p in self._query)

    def to_uri(self) -> str:
        netloc = f"[{self.host}]" if ":" in self.host else self.host
        if self.port is not None:
            netloc = f"{netloc}:{self.port}"
        return urlunsplit((self.scheme, netloc, self.path, self.query, ""))

    def __str__(self) -> str:
        return self.to_uri()

    def __repr__(self) -> str:
        return f"RequestUriBuilder({self.to_uri()!r})"


__all__ = ["RequestUriBuilder"]
