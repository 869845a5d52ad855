from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from tests._helpers import CATALOG_ORIGIN, PLAYER_ORIGIN, RecordingTransport, ScriptedRandom
from wager_bridge import reconciliation
from wager_bridge.catalog import CatalogSession
from wager_bridge.channel import ORIGIN_HEADER, EnvelopeChannel
from wager_bridge.clients.catalog_client import StaticCatalogSource
from wager_bridge.player import PlayerSession
from wager_bridge.schemas.payloads import BalanceDelta


@pytest.fixture
def catalog_app():
    """
    Catalog surface wired to a recording transport and a reliable static
    catalog; startup loading is disabled so each test drives it explicitly.
    """
    import catalog_surface.main as main

    transport = RecordingTransport()
    channel = EnvelopeChannel(transport, CATALOG_ORIGIN, PLAYER_ORIGIN)
    state = SimpleNamespace(
        transport=transport,
        session=CatalogSession(
            channel,
            StaticCatalogSource(failure_rate=0, latency_seconds=0),
            starting_balance=100,
            journal=main.journal,
        ),
    )
    main.journal.clear()
    main.app.router.on_startup.clear()
    main.app.dependency_overrides[main.get_session] = lambda: state.session
    with TestClient(main.app) as client:
        state.client = client
        yield state
    main.app.dependency_overrides.clear()
    main.journal.clear()


@pytest.fixture
def player_app():
    import player_surface.main as main

    transport = RecordingTransport()
    channel = EnvelopeChannel(transport, PLAYER_ORIGIN, CATALOG_ORIGIN)
    state = SimpleNamespace(
        transport=transport,
        rng=ScriptedRandom([-25, 100]),
    )
    state.session = PlayerSession(channel, rng=state.rng, settle_delay=0, journal=main.journal)
    main.journal.clear()
    main.app.dependency_overrides[main.get_session] = lambda: state.session
    with TestClient(main.app) as client:
        state.client = client
        yield state
    main.app.dependency_overrides.clear()
    main.journal.clear()


def _selection_message(balance=100, correlation_id="sel-1"):
    return {
        "type": "SELECT_ITEM",
        "data": {"id": 1, "name": "Slot Machine A", "wagerOptions": [1, 5, 10, 20], "balanceAtHandoff": balance},
        "correlationId": correlation_id,
    }


def test_health(catalog_app, player_app):
    assert catalog_app.client.get("/health").json() == {"status": "ok"}
    assert player_app.client.get("/health").json() == {"status": "ok"}


def test_items_are_listed(catalog_app):
    resp = catalog_app.client.get("/items")
    assert resp.status_code == 200
    body = resp.json()
    assert [item["id"] for item in body] == [1, 2, 3]
    assert body[1] == {"id": 2, "name": "Slot Machine B", "wagerOptions": [2, 5, 25, 50]}


def test_unavailable_catalog_maps_to_503(catalog_app):
    catalog_app.session.source = StaticCatalogSource(failure_rate=1.0, latency_seconds=0)
    resp = catalog_app.client.get("/items")
    assert resp.status_code == 503
    assert resp.json()["condition"] == "CATALOG_UNAVAILABLE"


def test_select_item_hands_off_over_the_channel(catalog_app):
    catalog_app.client.get("/items")
    resp = catalog_app.client.post("/items/1/select")

    assert resp.status_code == 200
    assert resp.json() == {
        "status": "handed_off",
        "selection": {"id": 1, "name": "Slot Machine A", "wagerOptions": [1, 5, 10, 20], "balanceAtHandoff": 100},
    }
    assert len(catalog_app.transport.sent) == 1
    message, origin = catalog_app.transport.sent[0]
    assert message["type"] == "SELECT_ITEM"
    assert origin == CATALOG_ORIGIN
    assert catalog_app.client.get("/balance").json() == {"balance": 100, "authoritative": False, "condition": None}
    assert [r["kind"] for r in catalog_app.client.get("/journal").json()] == ["SELECT_ITEM"]


def test_select_errors_map_to_status_codes(catalog_app):
    catalog_app.client.get("/items")

    missing = catalog_app.client.post("/items/99/select")
    assert missing.status_code == 404
    assert missing.json() == {"detail": "unknown item id 99", "condition": "ITEM_NOT_FOUND"}

    catalog_app.session.apply_balance_delta(BalanceDelta(delta=-99))
    broke = catalog_app.client.post("/items/3/select")
    assert broke.status_code == 402
    assert broke.json()["condition"] == "INSUFFICIENT_BALANCE"
    assert catalog_app.transport.sent == []


def test_catalog_messages_only_accepted_from_player_origin(catalog_app):
    update = {"type": "BALANCE_DELTA", "data": {"delta": -5, "resultingBalance": 95}, "correlationId": "d1"}

    spoofed = catalog_app.client.post("/messages", json=update, headers={ORIGIN_HEADER: "http://evil.test"})
    unsigned = catalog_app.client.post("/messages", json=update)
    garbage = catalog_app.client.post("/messages", json={"type": "NOPE"}, headers={ORIGIN_HEADER: PLAYER_ORIGIN})
    assert [r.status_code for r in (spoofed, unsigned, garbage)] == [202, 202, 202]
    assert catalog_app.session.balance == 100

    accepted = catalog_app.client.post("/messages", json=update, headers={ORIGIN_HEADER: PLAYER_ORIGIN})
    assert accepted.status_code == 202
    assert accepted.json() == {"status": "accepted"}
    assert catalog_app.client.get("/balance").json()["balance"] == 95
    records = catalog_app.client.get("/journal").json()
    assert [(r["correlationId"], r["status"]) for r in records] == [("d1", "applied")]


def test_clear_journal(catalog_app):
    catalog_app.client.get("/items")
    catalog_app.client.post("/items/1/select")

    resp = catalog_app.client.post("/admin/clear-journal")
    assert resp.json() == {"status": "cleared", "deleted": 1}
    assert catalog_app.client.get("/journal").json() == []


def test_reconciliation_download(catalog_app, monkeypatch):
    player_records = [
        {"correlationId": "lost", "kind": "BALANCE_DELTA", "direction": "sent",
         "payload": {"delta": 5, "resultingBalance": 105}, "status": "sent"},
    ]

    async def fake_list_journal():
        return player_records

    monkeypatch.setattr(reconciliation.player_journal_client, "list_journal", fake_list_journal)
    resp = catalog_app.client.get("/reconciliation_data")

    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/csv")
    assert resp.headers["X-Mismatch-Count"] == "1"
    assert resp.text.splitlines()[1] == "lost,5,105,True,False,"


def test_player_session_loads_from_catalog_message(player_app):
    assert player_app.client.get("/session").json()["state"] == "idle"

    resp = player_app.client.post("/messages", json=_selection_message(12), headers={ORIGIN_HEADER: CATALOG_ORIGIN})
    assert resp.status_code == 202

    session = player_app.client.get("/session").json()
    assert session["state"] == "item_loaded"
    assert session["balance"] == 12
    assert session["availableWagers"] == [1, 5, 10]
    assert session["canSpin"] is False


def test_player_ignores_selection_from_other_origins(player_app):
    resp = player_app.client.post("/messages", json=_selection_message(), headers={ORIGIN_HEADER: PLAYER_ORIGIN})
    assert resp.status_code == 202
    assert player_app.client.get("/session").json()["state"] == "idle"


def test_wager_and_spin(player_app):
    player_app.client.post("/messages", json=_selection_message(100), headers={ORIGIN_HEADER: CATALOG_ORIGIN})

    wager = player_app.client.post("/wager", json={"amount": 20})
    assert wager.status_code == 200
    assert wager.json()["selectedWager"] == 20
    assert wager.json()["canSpin"] is True

    spin = player_app.client.post("/spin")
    assert spin.status_code == 200
    body = spin.json()
    assert body["wager"] == 20
    assert body["outcome"] == -5
    assert body["balance"] == 95
    assert body["session"]["state"] == "item_loaded"

    message, origin = player_app.transport.sent[0]
    assert origin == PLAYER_ORIGIN
    assert message == {
        "type": "BALANCE_DELTA",
        "data": {"delta": -5, "resultingBalance": 95},
        "correlationId": body["correlationId"],
    }

    again = player_app.client.post("/spin", json={"amount": 10})
    assert again.json()["balance"] == 105
    kinds = [(r["direction"], r["kind"]) for r in player_app.client.get("/journal").json()]
    assert kinds == [("received", "SELECT_ITEM"), ("sent", "BALANCE_DELTA"), ("sent", "BALANCE_DELTA")]


def test_player_errors_map_to_status_codes(player_app):
    player_app.client.post("/messages", json=_selection_message(10), headers={ORIGIN_HEADER: CATALOG_ORIGIN})

    no_wager = player_app.client.post("/spin")
    assert no_wager.status_code == 422
    assert no_wager.json()["condition"] == "INVALID_WAGER"

    not_offered = player_app.client.post("/wager", json={"amount": 7})
    assert not_offered.status_code == 422
    assert not_offered.json()["condition"] == "INVALID_WAGER"

    too_big = player_app.client.post("/wager", json={"amount": 20})
    assert too_big.status_code == 402
    assert too_big.json()["condition"] == "INSUFFICIENT_BALANCE"

    assert player_app.transport.sent == []
    assert player_app.rng.calls == []
