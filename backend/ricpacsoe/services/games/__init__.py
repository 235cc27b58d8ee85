"""Game domain services: board, rules, rooms and the room registry.

Everything here except the scheduler is plain Python with no Flask imports,
so socket handlers and HTTP routes share one implementation of the rules
and keep transport concerns out of the game mechanics.
"""


def room_channel(room_id: str) -> str:
    """Socket.IO room name all members of a game room are joined to."""
    return f"room:{room_id}"
