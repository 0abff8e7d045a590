"""Tests for API endpoints."""

import pytest

from api.errors import StaleGameError

URL = "/api/blackjack"

# Player 10♠ 9♠ (19) against dealer 10♥ 6♥ (16), next card 5♣
NO_NATURAL = ("10♠", "10♥", "9♠", "6♥", "5♣")


async def _deal(client, headers, bet=100, **extra):
    return await client.post(URL, json={"action": "deal", "bet": bet, **extra}, headers=headers)


@pytest.mark.asyncio
async def test_health_check(client):
    """Test health check endpoint."""
    response = await client.get("/api/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


@pytest.mark.asyncio
async def test_missing_token(client):
    response = await client.post(URL, json={"action": "deal", "bet": 100})
    assert response.status_code == 401
    assert response.json() == {"error": "Unauthorized"}


@pytest.mark.asyncio
async def test_invalid_token(client):
    response = await client.post(
        URL,
        json={"action": "deal", "bet": 100},
        headers={"Authorization": "Bearer not-a-real-token"},
    )
    assert response.status_code == 401
    assert response.json() == {"error": "Invalid token"}


@pytest.mark.asyncio
async def test_get_not_allowed(client, auth_headers):
    response = await client.get(URL, headers=auth_headers())
    assert response.status_code == 405


@pytest.mark.asyncio
async def test_options_preflight(client):
    response = await client.options(URL)
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_unknown_action(client, auth_headers):
    response = await client.post(URL, json={"action": "split"}, headers=auth_headers())
    assert response.status_code == 400
    assert "error" in response.json()


@pytest.mark.asyncio
async def test_non_json_body_rejected(client, auth_headers):
    response = await client.post(
        URL,
        content=b'{"action": "deal", "bet": 100}',
        headers={**auth_headers(), "Content-Type": "text/plain"},
    )
    assert response.status_code == 400
    assert response.json()["error"] == "Invalid request"


@pytest.mark.asyncio
@pytest.mark.parametrize("bet", ["NaN", "Infinity"])
async def test_non_finite_bet_rejected(client, auth_headers, bet):
    response = await client.post(
        URL,
        content=f'{{"action": "deal", "bet": {bet}}}'.encode(),
        headers={**auth_headers(), "Content-Type": "application/json"},
    )
    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "Invalid request"
    for detail in body["details"]:
        assert set(detail) == {"loc", "msg", "type"}


@pytest.mark.asyncio
async def test_hit_requires_game_id(client, auth_headers):
    response = await client.post(URL, json={"action": "hit"}, headers=auth_headers())
    assert response.status_code == 400


@pytest.mark.asyncio
@pytest.mark.parametrize("bet, status", [(5, 400), (9, 400), (10, 200), (200, 200), (201, 400)])
async def test_bet_limits(client, auth_headers, stack_deck, bet, status):
    stack_deck(*NO_NATURAL)
    response = await _deal(client, auth_headers(), bet=bet)
    assert response.status_code == status
    if status == 400:
        assert response.json() == {"error": "Invalid bet amount (10-200)"}


@pytest.mark.asyncio
async def test_fractional_bet_rejected(client, auth_headers):
    response = await _deal(client, auth_headers(), bet=10.5)
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_side_bet_limits(client, auth_headers):
    response = await _deal(client, auth_headers(), perfectPairsBet=11)
    assert response.status_code == 400
    assert response.json() == {"error": "Invalid Perfect Pairs bet (0-10)"}

    response = await _deal(client, auth_headers(), twentyOnePlusThreeBet=-1)
    assert response.status_code == 400
    assert response.json() == {"error": "Invalid 21+3 bet (0-10)"}


@pytest.mark.asyncio
async def test_deal_hides_hole_card(client, auth_headers, stack_deck):
    stack_deck(*NO_NATURAL)
    response = await _deal(client, auth_headers(), perfectPairsBet=5)
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True

    game = body["game"]
    assert game["status"] == "playing"
    assert game["bet"] == 100
    assert game["perfectPairsBet"] == 5
    assert game["result"] is None
    assert game["resultAmount"] is None
    assert game["playerValue"] == 19
    assert game["playerHand"] == [
        {"suit": "♠", "rank": "10", "value": 10, "color": "black"},
        {"suit": "♠", "rank": "9", "value": 9, "color": "black"},
    ]
    assert game["dealerHand"] == [
        {"suit": "♥", "rank": "10", "value": 10, "color": "red"},
        {"hidden": True},
    ]
    assert game["dealerValue"] is None
    assert "deck" not in game


@pytest.mark.asyncio
async def test_deal_persists_side_bets(client, auth_headers, store, stack_deck):
    stack_deck(*NO_NATURAL)
    response = await _deal(client, auth_headers(), perfectPairsBet=5, twentyOnePlusThreeBet=2)

    stored = await store.get(response.json()["game"]["id"])
    assert stored.side_bets.perfect_pairs == 5
    assert stored.side_bets.twenty_one_plus_three == 2
    assert len(stored.deck) == 48


@pytest.mark.asyncio
async def test_deal_natural_reveals_dealer(client, auth_headers, stack_deck):
    stack_deck("A♠", "9♥", "K♠", "8♥")
    game = (await _deal(client, auth_headers(), bet=100)).json()["game"]

    assert game["status"] == "finished"
    assert game["result"] == "blackjack"
    assert game["resultAmount"] == 250
    assert game["dealerValue"] == 17
    assert len(game["dealerHand"]) == 2
    assert all("hidden" not in card for card in game["dealerHand"])


@pytest.mark.asyncio
async def test_deal_both_natural_push(client, auth_headers, stack_deck):
    stack_deck("A♠", "A♥", "Q♠", "J♥")
    game = (await _deal(client, auth_headers(), bet=80)).json()["game"]

    assert game["result"] == "push"
    assert game["resultAmount"] == 80


@pytest.mark.asyncio
async def test_second_deal_conflicts(client, auth_headers, stack_deck):
    stack_deck(*NO_NATURAL)
    headers = auth_headers()
    first = (await _deal(client, headers)).json()["game"]

    response = await _deal(client, headers)
    assert response.status_code == 400
    assert response.json() == {
        "error": "You already have an active game",
        "gameId": first["id"],
    }


@pytest.mark.asyncio
async def test_deal_after_natural_is_allowed(client, auth_headers, stack_deck):
    stack_deck("A♠", "9♥", "K♠", "8♥")
    headers = auth_headers()
    await _deal(client, headers)

    response = await _deal(client, headers)
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_other_players_are_independent(client, auth_headers, stack_deck):
    stack_deck(*NO_NATURAL)
    assert (await _deal(client, auth_headers("alice"))).status_code == 200
    assert (await _deal(client, auth_headers("bob"))).status_code == 200


@pytest.mark.asyncio
async def test_stand_resolves_dealer(client, auth_headers, stack_deck):
    stack_deck(*NO_NATURAL)
    headers = auth_headers()
    game_id = (await _deal(client, headers)).json()["game"]["id"]

    response = await client.post(URL, json={"action": "stand", "gameId": game_id}, headers=headers)
    assert response.status_code == 200
    game = response.json()["game"]
    assert game["status"] == "finished"
    assert game["result"] == "dealer_win"
    assert game["resultAmount"] == 0
    assert game["dealerValue"] == 21
    assert [c["rank"] for c in game["dealerHand"]] == ["10", "6", "5"]


@pytest.mark.asyncio
async def test_stand_twice_not_found(client, auth_headers, stack_deck):
    stack_deck(*NO_NATURAL)
    headers = auth_headers()
    game_id = (await _deal(client, headers)).json()["game"]["id"]
    body = {"action": "stand", "gameId": game_id}

    assert (await client.post(URL, json=body, headers=headers)).status_code == 200

    response = await client.post(URL, json=body, headers=headers)
    assert response.status_code == 404
    assert response.json() == {"error": "Active game not found"}


@pytest.mark.asyncio
async def test_stale_save_is_a_conflict(client, auth_headers, stack_deck, store, monkeypatch):
    stack_deck(*NO_NATURAL)
    headers = auth_headers()
    game_id = (await _deal(client, headers)).json()["game"]["id"]

    async def lost_race(game):
        raise StaleGameError(f"Game {game.id} was modified concurrently")

    monkeypatch.setattr(store, "save", lost_race)

    response = await client.post(URL, json={"action": "stand", "gameId": game_id}, headers=headers)
    assert response.status_code == 409
    assert response.json() == {"error": f"Game {game_id} was modified concurrently"}


@pytest.mark.asyncio
async def test_hit_into_bust(client, auth_headers, stack_deck):
    stack_deck("10♠", "7♥", "9♠", "K♥", "4♣")
    headers = auth_headers()
    game_id = (await _deal(client, headers)).json()["game"]["id"]

    response = await client.post(URL, json={"action": "hit", "gameId": game_id}, headers=headers)
    game = response.json()["game"]
    assert game["playerValue"] == 23
    assert game["result"] == "bust"
    assert game["resultAmount"] == 0
    assert game["dealerValue"] == 17


@pytest.mark.asyncio
async def test_hit_keeps_hole_card_hidden(client, auth_headers, stack_deck):
    stack_deck("5♠", "7♥", "6♠", "K♥", "2♣")
    headers = auth_headers()
    game_id = (await _deal(client, headers)).json()["game"]["id"]

    response = await client.post(URL, json={"action": "hit", "gameId": game_id}, headers=headers)
    game = response.json()["game"]
    assert game["status"] == "playing"
    assert game["playerValue"] == 13
    assert game["dealerHand"][1] == {"hidden": True}
    assert game["dealerValue"] is None


@pytest.mark.asyncio
async def test_hit_other_players_game_not_found(client, auth_headers, stack_deck):
    stack_deck(*NO_NATURAL)
    game_id = (await _deal(client, auth_headers("alice"))).json()["game"]["id"]

    response = await client.post(
        URL, json={"action": "hit", "gameId": game_id}, headers=auth_headers("mallory")
    )
    assert response.status_code == 404
    assert response.json() == {"error": "Active game not found"}


@pytest.mark.asyncio
async def test_hit_unknown_game_not_found(client, auth_headers):
    response = await client.post(
        URL, json={"action": "hit", "gameId": "does-not-exist"}, headers=auth_headers()
    )
    assert response.status_code == 404
