"""
Caller-facing exceptions.

These are deterministic outcomes of a request (never retried) and carry
the HTTP status and message the API surfaces verbatim.
"""

from fastapi import HTTPException, status


class RoomUnavailable(HTTPException):
    """Room does not exist or is no longer accepting votes"""

    def __init__(
        self,
        detail: str = "This room is not available for voting right now.",
    ):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class RoomNotFound(HTTPException):
    """Room does not exist"""

    def __init__(self, detail: str = "The requested room does not exist."):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class NotAMember(HTTPException):
    """Caller has no active membership in the room"""

    def __init__(
        self,
        detail: str = "You are not a member of this room or your membership is not active.",
    ):
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class NotRoomHost(HTTPException):
    """Operation restricted to the room host"""

    def __init__(self, detail: str = "Only the room host can do that."):
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class DuplicateVote(HTTPException):
    """Caller already voted for this media in this room"""

    def __init__(
        self,
        detail: str = "You have already voted for this movie in this room.",
    ):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)
