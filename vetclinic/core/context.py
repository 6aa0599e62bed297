"""
Per-request context.

A RequestContext is created when a request enters the application, lives on
``request.state.context`` and is handed to handlers and services through
dependency injection. It is cleared when the request leaves, on every exit
path.
"""
import time
import uuid
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, List, Optional

from fastapi import Request

if TYPE_CHECKING:
    from ..auth.credentials import Identity

CORRELATION_ID_HEADER = "X-Correlation-ID"
SYSTEM_USER = "system"
UNKNOWN_IP = "unknown"


@dataclass
class RequestContext:
    """Ephemeral state scoped to one HTTP request."""
    correlation_id: Optional[str] = None
    client_ip: str = UNKNOWN_IP
    identity: Optional["Identity"] = None
    authorities: List[str] = field(default_factory=list)
    started_at: float = field(default_factory=time.perf_counter)
    duration_ms: Optional[float] = None

    @classmethod
    def begin(cls, incoming_correlation_id: Optional[str] = None, client_ip: str = UNKNOWN_IP) -> "RequestContext":
        """
        Start a context, reusing a caller-supplied correlation id when it is
        present and not blank, otherwise generating a new one.
        """
        correlation_id = (incoming_correlation_id or "").strip() or str(uuid.uuid4())
        return cls(correlation_id=correlation_id, client_ip=client_ip)

    @property
    def is_authenticated(self) -> bool:
        return self.identity is not None

    @property
    def username(self) -> Optional[str]:
        return self.identity.email if self.identity is not None else None

    @property
    def caller(self) -> str:
        """Name used in log lines; anonymous work is attributed to ``system``."""
        return self.username or SYSTEM_USER

    def authenticate(self, identity: "Identity") -> None:
        self.identity = identity
        self.authorities = identity.authorities

    def finish(self) -> float:
        self.duration_ms = (time.perf_counter() - self.started_at) * 1000
        return self.duration_ms

    def clear(self) -> None:
        self.correlation_id = None
        self.client_ip = UNKNOWN_IP
        self.identity = None
        self.authorities = []
        self.duration_ms = None


def get_client_ip(request: Request) -> str:
    """
    Resolve the caller IP, honouring proxy headers.

    Order: first X-Forwarded-For entry, X-Real-IP, then the socket peer.
    """
    ip = request.headers.get("X-Forwarded-For")
    if not ip or ip.lower() == UNKNOWN_IP:
        ip = request.headers.get("X-Real-IP")
    if not ip or ip.lower() == UNKNOWN_IP:
        ip = request.client.host if request.client else None
    if ip and "," in ip:
        ip = ip.split(",")[0].strip()
    return ip or UNKNOWN_IP


def begin_request(request: Request) -> RequestContext:
    """
    Attach a fresh context to the request and return it.
    """
    context = RequestContext.begin(
        incoming_correlation_id=request.headers.get(CORRELATION_ID_HEADER),
        client_ip=get_client_ip(request),
    )
    request.state.context = context
    return context


def end_request(request: Request) -> None:
    """
    Clear and detach the request context. Safe to call more than once.
    """
    context = getattr(request.state, "context", None)
    if context is not None:
        context.clear()
        del request.state.context


def get_request_context(request: Request) -> RequestContext:
    """
    FastAPI dependency returning the context of the current request.

    Creates one when the correlation middleware is not installed, so routes
    still work in isolation.
    """
    context = getattr(request.state, "context", None)
    if context is None:
        context = begin_request(request)
    return context
