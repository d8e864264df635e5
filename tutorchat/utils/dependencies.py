from typing import Optional

from fastapi import Header, HTTPException, status


async def get_current_user(
    x_user_id: Optional[str] = Header(default=None),
    x_user_name: Optional[str] = Header(default=None),
) -> dict:
    """
    Caller identity as forwarded by the authenticating gateway.

    The headers are trusted; nothing here re-verifies a session.
    """
    if not x_user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing caller identity")
    return {"_id": x_user_id, "name": x_user_name}
