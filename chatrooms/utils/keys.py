"""Store key namespaces.

Every key is scoped by room id and/or username so unrelated requests never
contend on the same key.
"""

from __future__ import annotations

from urllib.parse import quote

ROOM_KEY = "chat:room:{room_id}"  # JSON room record
ROOMS_SET = "chat:rooms"  # set of room ids
MESSAGES_KEY = "chat:messages:{room_id}"  # list, head = newest
ROOM_USERS_KEY = "chat:room:users:{room_id}"  # legacy membership set
PRESENCE_KEY = "chat:presence:z:{room_id}"  # zset username -> last seen (ms)
USER_KEY = "chat:users:{username}"  # JSON user record
TOKEN_KEY = "chat:token:user:{username}:{token}"

BURST_SHORT_KEY = "rl:chat:s:{room_id}:{username}"
BURST_LONG_KEY = "rl:chat:l:{room_id}:{username}"
BURST_LAST_KEY = "rl:chat:last:{room_id}:{username}"
AI_QUOTA_PREFIX = "rl:ai"

ROOM_CHANNEL = "chat:channel:room:{room_id}"
USER_CHANNEL = "chat:channel:user:{username}"
ROOMS_CHANNEL = "chat:channel:rooms"


def room_key(room_id: str) -> str:
    return ROOM_KEY.format(room_id=room_id)


def messages_key(room_id: str) -> str:
    return MESSAGES_KEY.format(room_id=room_id)


def room_users_key(room_id: str) -> str:
    return ROOM_USERS_KEY.format(room_id=room_id)


def presence_key(room_id: str) -> str:
    return PRESENCE_KEY.format(room_id=room_id)


def user_key(username: str) -> str:
    return USER_KEY.format(username=username)


def token_key(username: str, token: str) -> str:
    return TOKEN_KEY.format(username=username.lower(), token=token)


def make_key(parts: list[str | None]) -> str:
    """Join non-empty parts with ``:`` after percent-encoding each one.

    >>> make_key(["rl", "create-room", None, "10.0.0.1"])
    'rl:create-room:10.0.0.1'
    """
    return ":".join(quote(str(p), safe="") for p in parts if p not in (None, ""))
