from moviematch.voting.engine import VoteEngine
from moviematch.voting.rooms import RoomService

__all__ = ["VoteEngine", "RoomService"]
