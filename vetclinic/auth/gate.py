"""
Authentication gate.

Runs once per request, before every route handler, as an application-wide
dependency. It never rejects a request: a missing, malformed, expired or
otherwise unusable token leaves the caller anonymous, and routes that need
an identity reject through the dependencies in ``auth.dependencies``.
"""
import logging
from typing import Optional

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from ..core.context import RequestContext, get_request_context
from ..core.security import decode_token, validate_token
from ..database import get_db
from ..exceptions import AppException
from .credentials import Identity, credential_sources_for_role

# Set up logging
logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


def extract_bearer_token(request: Request) -> Optional[str]:
    """Token from the Authorization header, or None when absent or not Bearer."""
    header = request.headers.get("Authorization")
    if not header or not header.startswith(BEARER_PREFIX):
        return None
    token = header[len(BEARER_PREFIX):].strip()
    return token or None


def resolve_identity(db: Session, token: str) -> Optional[Identity]:
    """
    Map a token to the identity it proves, or None.

    The role claim picks the credential source: CLIENT tokens are owners,
    staff roles are users, and tokens without a usable claim are tried as
    staff first, then as owner.
    """
    try:
        payload = decode_token(token)
    except AppException as e:
        logger.warning(f"Cannot parse access token: {e.detail}")
        return None

    for source in credential_sources_for_role(payload.claims.get("role")):
        try:
            identity = source.load_by_email(db, payload.subject)
        except AppException as e:
            logger.debug(f"{source.resource_name} lookup failed for token subject: {e.detail}")
            continue
        if validate_token(token, identity.email):
            return identity
        logger.info(f"Expired or mismatched token presented for {payload.subject}")
        return None

    return None


def authentication_gate(
    request: Request,
    context: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db)
) -> None:
    """
    Attach the identity proven by the bearer token to the request context.
    """
    token = extract_bearer_token(request)
    if token is None or context.is_authenticated:
        return

    identity = resolve_identity(db, token)
    if identity is not None:
        context.authenticate(identity)
