"""
Permission evaluation for dispatched requests.
"""

from typing import Optional, Union

from nostr_connect.models.permission import Method, Permission
from nostr_connect.models.session import Session


def authorized(session: Session, method: Union[Method, str], event_kind: Optional[int] = None) -> bool:
    """True iff the bare method is granted, or sign_event is granted for this kind."""
    resolved = method if isinstance(method, Method) else Method.lookup(method)
    if resolved is None:
        return False
    if Permission(method=resolved) in session.permissions:
        return True
    if resolved is Method.SIGN_EVENT and event_kind is not None:
        return Permission(method=resolved, kind=event_kind) in session.permissions
    return False
