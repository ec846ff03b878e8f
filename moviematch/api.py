"""FastAPI surface for rooms, votes and the movie catalog."""

from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Header, Request, Response
from loguru import logger
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from pydantic import BaseModel

from moviematch.container import Services, build_services
from moviematch.models import MediaDetail, MediaSummary, RoomView


class CreateRoomRequest(BaseModel):
    name: str


class VoteRequest(BaseModel):
    media_id: str


def current_user(x_user_id: str = Header(...)) -> str:
    """Identity is supplied upstream and trusted as-is."""
    return x_user_id


def get_services(request: Request) -> Services:
    return request.app.state.services


def create_app(services: Services | None = None) -> FastAPI:
    """Create the API app.

    Args:
        services: Prebuilt services (tests); built from settings otherwise

    Returns:
        FastAPI app
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = services is None
        app.state.services = services or build_services()
        await app.state.services.store.init()
        logger.info("MovieMatch API started")
        try:
            yield
        finally:
            if owned:
                await app.state.services.close()

    app = FastAPI(title="MovieMatch", lifespan=lifespan)

    @app.post("/rooms", response_model=RoomView)
    async def create_room(
        body: CreateRoomRequest,
        user_id: str = Depends(current_user),
        svc: Services = Depends(get_services),
    ):
        return await svc.rooms.create_room(user_id, body.name)

    @app.get("/rooms", response_model=list[RoomView])
    async def list_rooms(
        user_id: str = Depends(current_user),
        svc: Services = Depends(get_services),
    ):
        return await svc.rooms.list_user_rooms(user_id)

    @app.get("/rooms/{room_id}", response_model=RoomView)
    async def get_room(
        room_id: str,
        user_id: str = Depends(current_user),
        svc: Services = Depends(get_services),
    ):
        return await svc.rooms.get_room(user_id, room_id)

    @app.post("/rooms/{room_id}/join", response_model=RoomView)
    async def join_room(
        room_id: str,
        user_id: str = Depends(current_user),
        svc: Services = Depends(get_services),
    ):
        return await svc.rooms.join_room(user_id, room_id)

    @app.post("/rooms/{room_id}/leave", response_model=RoomView)
    async def leave_room(
        room_id: str,
        user_id: str = Depends(current_user),
        svc: Services = Depends(get_services),
    ):
        return await svc.rooms.leave_room(user_id, room_id)

    @app.post("/rooms/{room_id}/start", response_model=RoomView)
    async def start_room(
        room_id: str,
        user_id: str = Depends(current_user),
        svc: Services = Depends(get_services),
    ):
        return await svc.rooms.start_room(user_id, room_id)

    @app.post("/rooms/{room_id}/votes", response_model=RoomView)
    async def vote(
        room_id: str,
        body: VoteRequest,
        user_id: str = Depends(current_user),
        svc: Services = Depends(get_services),
    ):
        return await svc.votes.cast_vote(user_id, room_id, body.media_id)

    @app.get("/movies", response_model=list[MediaSummary])
    async def get_movies(
        genre: str | None = None,
        svc: Services = Depends(get_services),
    ):
        return await svc.movies.get_candidates(genre)

    @app.get("/movies/{media_id}", response_model=MediaDetail)
    async def get_movie_details(
        media_id: str,
        svc: Services = Depends(get_services),
    ):
        return await svc.movies.get_details(media_id)

    @app.get("/health")
    async def health_check(svc: Services = Depends(get_services)):
        """Health check endpoint."""
        return {
            "status": "ok",
            "service": "moviematch",
            "circuit_breaker": svc.breaker.get_status(),
            "cache": svc.cache.get_stats().to_dict(),
        }

    @app.get("/metrics")
    async def metrics():
        return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)

    return app
