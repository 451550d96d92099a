"""User lookups for the single local profile."""

from __future__ import annotations

from typing import Callable, Optional

from sqlmodel import Session, select

from ...models.user import User

LOCAL_USERNAME = "local"


def ensure_local_user(
    session_factory: Callable[[], Session], *, display_name: Optional[str] = None
) -> User:
    """Create or return the default local profile."""

    with session_factory() as session:
        user = session.exec(select(User).where(User.username == LOCAL_USERNAME)).first()
        if user:
            session.expunge(user)
            return user
        user = User(username=LOCAL_USERNAME, display_name=display_name)
        session.add(user)
        session.commit()
        session.refresh(user)
        session.expunge(user)
        return user
