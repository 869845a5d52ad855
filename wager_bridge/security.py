import hmac
from typing import Optional

from wager_bridge.errors import PeerUnauthenticated


def validate_origin(origin: Optional[str], expected: str):
    """
    Accept a message only when its declared source identity is exactly the
    configured peer identity.
    """
    if not origin or not hmac.compare_digest(origin.encode(), expected.encode()):
        raise PeerUnauthenticated(origin, expected)
