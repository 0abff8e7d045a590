"""Game persistence with a Redis backend and in-memory fallback."""

import asyncio
import json
import logging
from abc import ABC, abstractmethod
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from datetime import datetime
from typing import Any, AsyncIterator

import redis.asyncio as redis
from redis.exceptions import LockError, RedisError, WatchError

from api.errors import ConflictError, PersistenceError, StaleGameError
from config import config
from core.cards import Card, Rank, Suit
from core.errors import IllegalActionError
from core.game.state import Game, GameStatus, SideBets, is_valid_transition
from core.hand import Hand
from core.outcome import GameResult

logger = logging.getLogger(__name__)

# A create that loses a race to a deal which already finished is retried
CREATE_ATTEMPTS = 2


def _serialize_card(card: Card) -> dict[str, Any]:
    """Serialize a card to a dict."""
    return {"suit": str(card.suit), "rank": str(card.rank), "value": card.value}


def _deserialize_card(data: dict[str, Any]) -> Card:
    """Deserialize a card from a dict."""
    return Card(Rank.from_symbol(data["rank"]), Suit(data["suit"]))


def _serialize_datetime(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _deserialize_datetime(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value is not None else None


def _serialize_game(game: Game) -> dict[str, Any]:
    """Serialize the full game record for storage."""
    return {
        "id": game.id,
        "owner": game.owner,
        "bet_amount": game.bet_amount,
        "side_bets": {
            "perfect_pairs": game.side_bets.perfect_pairs,
            "twenty_one_plus_three": game.side_bets.twenty_one_plus_three,
        },
        "status": game.status.value,
        "player_hand": [_serialize_card(c) for c in game.player_hand],
        "dealer_hand": [_serialize_card(c) for c in game.dealer_hand],
        "deck": [_serialize_card(c) for c in game.deck],
        "result": game.result.value if game.result is not None else None,
        "result_amount": game.result_amount,
        "dealer_revealed": game.dealer_revealed,
        "created_at": _serialize_datetime(game.created_at),
        "ended_at": _serialize_datetime(game.ended_at),
        "version": game.version,
    }


def _deserialize_game(data: dict[str, Any]) -> Game:
    """Restore a game record from storage."""
    side_bets = data.get("side_bets") or {}
    return Game(
        id=data["id"],
        owner=data["owner"],
        bet_amount=data["bet_amount"],
        side_bets=SideBets(
            perfect_pairs=side_bets.get("perfect_pairs", 0),
            twenty_one_plus_three=side_bets.get("twenty_one_plus_three", 0),
        ),
        status=GameStatus(data["status"]),
        player_hand=Hand(tuple(_deserialize_card(c) for c in data["player_hand"])),
        dealer_hand=Hand(tuple(_deserialize_card(c) for c in data["dealer_hand"])),
        deck=[_deserialize_card(c) for c in data["deck"]],
        result=GameResult(data["result"]) if data.get("result") else None,
        result_amount=data.get("result_amount"),
        dealer_revealed=data.get("dealer_revealed", False),
        created_at=_deserialize_datetime(data["created_at"]),
        ended_at=_deserialize_datetime(data.get("ended_at")),
        version=data.get("version", 0),
    )


def _check_write(stored: dict[str, Any], game: Game) -> None:
    """
    Reject a save that would overwrite a newer record or move status backwards.

    Raises:
        StaleGameError: If the stored version differs from the loaded one
        IllegalActionError: If the status change is not a valid transition
    """
    if stored["version"] != game.version:
        raise StaleGameError(f"Game {game.id} was modified concurrently")

    previous = GameStatus(stored["status"])
    if previous != game.status and not is_valid_transition(previous, game.status):
        raise IllegalActionError(
            f"Game {game.id} cannot move from {previous} to {game.status}"
        )


def _decode(value: bytes | str | None) -> str | None:
    if isinstance(value, bytes):
        return value.decode()
    return value


class GameStore(ABC):
    """Abstract game store."""

    @abstractmethod
    async def get(self, game_id: str) -> Game | None:
        """Load a game by id."""
        ...

    @abstractmethod
    async def find_active(self, owner: str) -> Game | None:
        """Return the owner's unfinished game, if any."""
        ...

    @abstractmethod
    async def create(self, game: Game) -> None:
        """
        Insert a new game.

        Raises:
            ConflictError: If the game is active and the owner already has
                an active game
        """
        ...

    @abstractmethod
    async def save(self, game: Game) -> None:
        """
        Write back a mutated game, bumping its version.

        Raises:
            StaleGameError: If the stored record changed since it was loaded
        """
        ...

    @abstractmethod
    def lock(self, game_id: str) -> AbstractAsyncContextManager[None]:
        """Hold an exclusive lock on one game for a read-modify-write."""
        ...

    async def find_owned(
        self,
        owner: str,
        game_id: str,
        status: GameStatus = GameStatus.PLAYING,
    ) -> Game | None:
        """
        Load a game only if it belongs to the owner and has the given status.

        A missing game, someone else's game and a game in another status
        all come back as None.
        """
        game = await self.get(game_id)
        if game is None or game.owner != owner or game.status != status:
            return None
        return game


class InMemoryGameStore(GameStore):
    """In-memory game store for local development and tests."""

    def __init__(self) -> None:
        self._games: dict[str, dict[str, Any]] = {}
        self._active: dict[str, str] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_users: dict[str, int] = {}
        self._write_lock = asyncio.Lock()

    async def get(self, game_id: str) -> Game | None:
        data = self._games.get(game_id)
        if data is None:
            return None
        return _deserialize_game(data)

    async def find_active(self, owner: str) -> Game | None:
        game_id = self._active.get(owner)
        if game_id is None:
            return None
        return await self.get(game_id)

    async def create(self, game: Game) -> None:
        async with self._write_lock:
            if game.is_active:
                existing = self._active.get(game.owner)
                if existing is not None:
                    raise ConflictError(existing)
                self._active[game.owner] = game.id
            self._games[game.id] = _serialize_game(game)

    async def save(self, game: Game) -> None:
        async with self._write_lock:
            stored = self._games.get(game.id)
            if stored is None:
                raise PersistenceError(f"Game {game.id} does not exist")
            _check_write(stored, game)

            data = _serialize_game(game)
            data["version"] = game.version + 1
            self._games[game.id] = data
            game.version += 1

            if not game.is_active and self._active.get(game.owner) == game.id:
                del self._active[game.owner]

    @asynccontextmanager
    async def lock(self, game_id: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(game_id, asyncio.Lock())
        self._lock_users[game_id] = self._lock_users.get(game_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            # Forget the lock once nobody holds or waits on it
            self._lock_users[game_id] -= 1
            if not self._lock_users[game_id]:
                del self._lock_users[game_id]
                del self._locks[game_id]


class RedisGameStore(GameStore):
    """
    Redis-backed game store.

    Keys:
        ``{prefix}game:{id}``: the JSON game record
        ``{prefix}active:{owner}``: id of the owner's unfinished game
        ``{prefix}lock:{id}``: per-game lock for hit/stand
    """

    def __init__(
        self,
        redis_client: "redis.Redis",
        prefix: str | None = None,
        lock_timeout: float | None = None,
        lock_blocking_timeout: float | None = None,
    ) -> None:
        self._redis = redis_client
        self._prefix = prefix or config.store.key_prefix
        self._lock_timeout = lock_timeout or config.store.lock_timeout
        self._lock_blocking_timeout = (
            lock_blocking_timeout or config.store.lock_blocking_timeout
        )

    def _game_key(self, game_id: str) -> str:
        return f"{self._prefix}game:{game_id}"

    def _active_key(self, owner: str) -> str:
        return f"{self._prefix}active:{owner}"

    def _lock_key(self, game_id: str) -> str:
        return f"{self._prefix}lock:{game_id}"

    async def get(self, game_id: str) -> Game | None:
        try:
            data = await self._redis.get(self._game_key(game_id))
        except RedisError as exc:
            raise PersistenceError("Failed to load game") from exc
        if data is None:
            return None
        return _deserialize_game(json.loads(data))

    async def find_active(self, owner: str) -> Game | None:
        try:
            game_id = _decode(await self._redis.get(self._active_key(owner)))
        except RedisError as exc:
            raise PersistenceError("Failed to look up active game") from exc
        if game_id is None:
            return None

        game = await self.get(game_id)
        if game is None or not game.is_active:
            return None
        return game

    async def create(self, game: Game) -> None:
        try:
            for _ in range(CREATE_ATTEMPTS):
                try:
                    await self._insert(game)
                    return
                except WatchError:
                    # Another deal for the same owner committed first
                    existing = await self.find_active(game.owner)
                    if existing is not None:
                        raise ConflictError(existing.id)
        except RedisError as exc:
            raise PersistenceError("Failed to create game") from exc
        raise PersistenceError(f"Game {game.id} could not be created")

    async def _insert(self, game: Game) -> None:
        """Insert the game in one transaction watching the owner's pointer."""
        game_key = self._game_key(game.id)
        active_key = self._active_key(game.owner)
        payload = json.dumps(_serialize_game(game))

        async with self._redis.pipeline(transaction=True) as pipe:
            await pipe.watch(active_key)
            if game.is_active:
                existing_id = _decode(await pipe.get(active_key))
                if existing_id is not None:
                    raw = await pipe.get(self._game_key(existing_id))
                    # A pointer to a missing or finished game is stale
                    if raw is not None and GameStatus(json.loads(raw)["status"]).is_active:
                        raise ConflictError(existing_id)

            pipe.multi()
            pipe.set(game_key, payload)
            if game.is_active:
                pipe.set(active_key, game.id)
            await pipe.execute()

    async def save(self, game: Game) -> None:
        game_key = self._game_key(game.id)
        active_key = self._active_key(game.owner)

        try:
            async with self._redis.pipeline(transaction=True) as pipe:
                await pipe.watch(game_key, active_key)
                raw = await pipe.get(game_key)
                if raw is None:
                    raise PersistenceError(f"Game {game.id} does not exist")
                _check_write(json.loads(raw), game)
                active_id = _decode(await pipe.get(active_key))

                data = _serialize_game(game)
                data["version"] = game.version + 1

                pipe.multi()
                pipe.set(game_key, json.dumps(data))
                if not game.is_active and active_id == game.id:
                    pipe.delete(active_key)
                await pipe.execute()
        except WatchError as exc:
            raise StaleGameError(f"Game {game.id} was modified concurrently") from exc
        except RedisError as exc:
            raise PersistenceError("Failed to save game") from exc

        game.version += 1

    @asynccontextmanager
    async def lock(self, game_id: str) -> AsyncIterator[None]:
        lock = self._redis.lock(
            self._lock_key(game_id),
            timeout=self._lock_timeout,
            blocking_timeout=self._lock_blocking_timeout,
        )
        try:
            acquired = await lock.acquire()
        except RedisError as exc:
            raise PersistenceError("Failed to lock game") from exc
        if not acquired:
            raise PersistenceError(f"Game {game_id} is busy")

        try:
            yield
        finally:
            try:
                await lock.release()
            except LockError:
                # The save's version check still guards the write
                logger.warning("Lock on game %s expired before release", game_id)


# Global game store instance
_game_store: GameStore | None = None


async def get_game_store() -> GameStore:
    """Get or create the game store."""
    global _game_store

    if _game_store is not None:
        return _game_store

    redis_client = redis.from_url(config.redis.url, decode_responses=True)
    try:
        await redis_client.ping()
    except RedisError as exc:
        logger.warning(
            "Redis unavailable at %s:%s (%s); falling back to in-memory game store",
            config.redis.host,
            config.redis.port,
            exc,
        )
        await redis_client.aclose()
        _game_store = InMemoryGameStore()
    else:
        _game_store = RedisGameStore(redis_client)
    return _game_store
