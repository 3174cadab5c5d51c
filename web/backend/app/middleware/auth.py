"""Request dependencies shared by the routers.

- :func:`get_context` returns the process-wide :class:`ServiceContext`.
- :func:`require_authorization` returns the caller's ``Authorization``
  header verbatim.  It is not validated here; the store backend does that
  when the header is forwarded with the feedback update.
"""

from __future__ import annotations

from typing import Optional

from fastapi import Header, HTTPException, Request, status

from shopassist.context import ServiceContext


def get_context(request: Request) -> ServiceContext:
    """FastAPI dependency returning the service context, or 503."""
    context: Optional[ServiceContext] = getattr(request.app.state, "context", None)
    if context is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Dịch vụ chưa sẵn sàng, vui lòng thử lại sau",
        )
    return context


async def require_authorization(
    authorization: Optional[str] = Header(None),
) -> str:
    """Return the raw ``Authorization`` header or raise ``401``."""
    if not authorization:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Yêu cầu thiếu Authorization header.",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return authorization
