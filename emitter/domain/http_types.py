"""Request model for the demo server."""

from dataclasses import dataclass, field


@dataclass
class HttpRequest:
    """A parsed request line and header block; request bodies are not read."""

    method: str
    path: str
    headers: dict[str, str] = field(default_factory=dict)
    query: dict[str, str] = field(default_factory=dict)
    version: str = "HTTP/1.1"
