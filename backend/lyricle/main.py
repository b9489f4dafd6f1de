import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Query, Request, Response
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from . import config, database, spotify
from .database import get_db
from .errors import AdminDisabledError, LyricleError
from .models import (
    AdminGameResponse,
    CreateGameRequest,
    GameStateResponse,
    GameStatsModel,
    GameSummary,
    GuessRequest,
    GuessResponse,
    PlaylistModel,
    TrackModel,
)
from .service import GameService, summarize

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await database.init_db()
    logger.info("[db] Ready.")
    yield
    await database.dispose()


app = FastAPI(title="Lyricle", lifespan=lifespan)


@app.exception_handler(LyricleError)
async def lyricle_error_handler(request: Request, exc: LyricleError):
    if exc.status_code >= 500:
        logger.error("[api] %s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=exc.status_code,
        content={"code": exc.code, "message": exc.message, "error": exc.message},
    )


def get_service(db: AsyncSession = Depends(get_db)) -> GameService:
    return GameService(db)


def require_admin() -> None:
    if not config.ADMIN_MODE:
        raise AdminDisabledError()


# ---------------------------------------------------------------------------
# Player routes
# ---------------------------------------------------------------------------


@app.get("/api/games/stats", response_model=GameStatsModel)
async def get_stats(date: str = Query(...), service: GameService = Depends(get_service)):
    return await service.get_stats(date)


@app.get("/api/games/month/{month}", response_model=list[GameSummary])
async def get_month(month: str, service: GameService = Depends(get_service)):
    return [summarize(game) for game in await service.get_by_month(month)]


@app.get("/api/games/{date}", response_model=GameStateResponse)
async def get_game(
    date: str,
    player_id: str = Query("", alias="playerId"),
    service: GameService = Depends(get_service),
):
    """Masked game state as seen by one player."""
    return await service.get_player_state(date, player_id)


@app.post("/api/games/{date}/guess", response_model=GuessResponse)
async def post_guess(date: str, body: GuessRequest, service: GameService = Depends(get_service)):
    return await service.submit_guess(date, body.player_id, body.guess)


# ---------------------------------------------------------------------------
# Admin routes
# ---------------------------------------------------------------------------


@app.get(
    "/api/admin/games/{date}",
    response_model=AdminGameResponse,
    dependencies=[Depends(require_admin)],
)
async def admin_get_game(date: str, service: GameService = Depends(get_service)):
    return await service.admin_view(date)


@app.post("/api/admin/games", response_model=AdminGameResponse, dependencies=[Depends(require_admin)])
async def admin_create_game(body: CreateGameRequest, service: GameService = Depends(get_service)):
    """Schedule a game from a catalog track, from raw song text, or as pending."""
    if body.spotify_id:
        game = await service.create_from_track(body.date, body.spotify_id)
    elif body.title or body.artist or body.lyrics:
        game = await service.create_or_update(body.date, body.title, body.artist, body.lyrics)
    else:
        game = await service.create_pending(body.date)
    return await service.admin_view(game.date)


@app.delete("/api/admin/games/{date}", status_code=204, dependencies=[Depends(require_admin)])
async def admin_delete_game(date: str, service: GameService = Depends(get_service)):
    await service.delete(date)
    return Response(status_code=204)


@app.get(
    "/api/admin/spotify/tracks/search",
    response_model=list[TrackModel],
    dependencies=[Depends(require_admin)],
)
async def admin_search_tracks(q: str = Query("")):
    return await spotify.search_tracks(q)


@app.get(
    "/api/admin/spotify/playlists/search",
    response_model=list[PlaylistModel],
    dependencies=[Depends(require_admin)],
)
async def admin_search_playlists(q: str = Query("")):
    return await spotify.search_playlists(q)


@app.get(
    "/api/admin/spotify/playlists/{playlist_id}/tracks",
    response_model=list[TrackModel],
    dependencies=[Depends(require_admin)],
)
async def admin_playlist_tracks(playlist_id: str):
    return await spotify.playlist_tracks(playlist_id)
