from fastapi import Header, HTTPException, status

from app.services.scope import InvalidScopeError


async def get_actor_id(x_admin_user_id: str | None = Header(default=None)) -> int:
    """Admin user id forwarded by the authenticating gateway."""
    if x_admin_user_id is None or not x_admin_user_id.strip():
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    try:
        actor_id = int(x_admin_user_id.strip())
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid admin user id") from exc
    if actor_id <= 0:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid admin user id")
    return actor_id


def http_error_for(exc: ValueError) -> HTTPException:
    if isinstance(exc, InvalidScopeError):
        return HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


def parse_ticket_ids(raw: str | None, *, max_tickets: int) -> list[str]:
    tokens = [token.strip() for token in (raw or "").split(",") if token.strip()]
    if len(tokens) > max_tickets:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"At most {max_tickets} ticket_ids per request",
        )
    return tokens
