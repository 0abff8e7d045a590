"""Blackjack action endpoint."""

import logging
from random import Random
from typing import Annotated

from fastapi import APIRouter, Body, Depends, Request, Response

from api.auth import get_current_owner
from api.errors import ConflictError, NotFoundError
from api.limiter import limiter
from api.schemas import ActionRequest, DealRequest, GameEnvelope, HitRequest, StandRequest
from api.store import GameStore, get_game_store
from api.views import public_view
from config import config
from core.game import BlackjackRound, Game, GameStatus
from core.rules import TableRules

logger = logging.getLogger(__name__)

router = APIRouter()

TABLE_RULES = TableRules()


def get_random_source() -> Random:
    """A fresh, independently seeded random source for each deal."""
    return Random()


def get_table_rules() -> TableRules:
    return TABLE_RULES


async def handle_deal(
    store: GameStore,
    owner: str,
    request: DealRequest,
    rng: Random,
    rules: TableRules,
) -> Game:
    """Validate stakes, enforce one active game per owner and deal a new game."""
    round_ = BlackjackRound.deal(
        owner,
        request.bet,
        perfect_pairs_bet=request.perfect_pairs_bet,
        twenty_one_plus_three_bet=request.twenty_one_plus_three_bet,
        rules=rules,
        rng=rng,
    )

    existing = await store.find_active(owner)
    if existing is not None:
        raise ConflictError(existing.id)

    # create() re-checks the active game atomically
    await store.create(round_.game)
    return round_.game


async def _load_playing(store: GameStore, owner: str, game_id: str) -> BlackjackRound:
    game = await store.find_owned(owner, game_id, GameStatus.PLAYING)
    if game is None:
        raise NotFoundError()
    return BlackjackRound(game)


async def handle_hit(store: GameStore, owner: str, game_id: str) -> Game:
    """Deal the player one card under the game's lock."""
    async with store.lock(game_id):
        round_ = await _load_playing(store, owner, game_id)
        game = round_.hit()
        await store.save(game)
    return game


async def handle_stand(store: GameStore, owner: str, game_id: str) -> Game:
    """Play out the dealer and settle the game under its lock."""
    async with store.lock(game_id):
        round_ = await _load_playing(store, owner, game_id)
        game = round_.stand()
        await store.save(game)
    return game


@router.options("")
async def preflight() -> Response:
    """Answer CORS preflight requests."""
    return Response(status_code=200)


@router.post("")
@limiter.limit(f"{config.rate_limit.requests_per_minute}/minute")
async def blackjack_action(
    request: Request,
    payload: Annotated[ActionRequest, Body()],
    owner: Annotated[str, Depends(get_current_owner)],
    store: Annotated[GameStore, Depends(get_game_store)],
    rng: Annotated[Random, Depends(get_random_source)],
    rules: Annotated[TableRules, Depends(get_table_rules)],
) -> GameEnvelope:
    """Dispatch a deal, hit or stand action for the authenticated player."""
    if isinstance(payload, DealRequest):
        game = await handle_deal(store, owner, payload, rng, rules)
    elif isinstance(payload, HitRequest):
        game = await handle_hit(store, owner, payload.game_id)
    elif isinstance(payload, StandRequest):
        game = await handle_stand(store, owner, payload.game_id)
    else:  # pragma: no cover
        raise TypeError(f"Unhandled action: {payload!r}")

    return GameEnvelope(game=public_view(game))
