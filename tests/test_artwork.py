"""
test_artwork.py — Tests for the artwork kanban board

Covers board initialization (idempotent), default-column protection,
card creation/insert positions, moves within and across columns
(positions stay contiguous), comments, and deletion renumbering.

Called by: pytest
Depends on: routers/artwork.py, services/artwork_service.py, conftest.py
"""

import pytest

from swagsuite.models import ArtworkCard, ArtworkColumn
from swagsuite.services.artwork_service import DEFAULT_COLUMNS, initialize_board


@pytest.fixture()
def board(db_session):
    return initialize_board(db_session)


def _positions(client, column_id):
    cards = client.get("/api/artwork/cards", params={"column_id": column_id}).json()
    return [(c["title"], c["position"]) for c in cards]


def _card(client, column_id, title, **kw):
    resp = client.post("/api/artwork/cards", json={"title": title, "column_id": column_id, **kw})
    assert resp.status_code == 201
    return resp.json()


# ── Columns ──────────────────────────────────────────────────────────


class TestColumns:
    def test_initialize_creates_defaults(self, client):
        resp = client.post("/api/artwork/columns/initialize")
        assert resp.status_code == 200
        names = [c["name"] for c in resp.json()]
        assert names == [name for _, name, _ in DEFAULT_COLUMNS]
        assert all(c["is_default"] for c in resp.json())

    def test_initialize_is_idempotent(self, client, db_session):
        client.post("/api/artwork/columns/initialize")
        client.post("/api/artwork/columns/initialize")
        assert db_session.query(ArtworkColumn).count() == len(DEFAULT_COLUMNS)

    def test_create_custom_column_appends(self, client, board):
        resp = client.post("/api/artwork/columns", json={"name": "On Hold", "color": "#123ABC"})
        assert resp.status_code == 201
        assert resp.json()["position"] == len(DEFAULT_COLUMNS)
        assert resp.json()["is_default"] is False

    def test_invalid_color_422(self, client):
        assert client.post("/api/artwork/columns", json={"name": "X", "color": "red"}).status_code == 422

    def test_default_column_cannot_be_deleted(self, client, board):
        resp = client.delete(f"/api/artwork/columns/{board[0].id}")
        assert resp.status_code == 400
        assert resp.json()["error"] == "Default columns cannot be deleted"

    def test_delete_custom_column_removes_cards(self, client, db_session):
        col = client.post("/api/artwork/columns", json={"name": "Temp"}).json()
        _card(client, col["id"], "Doomed")
        assert client.delete(f"/api/artwork/columns/{col['id']}").status_code == 204
        assert db_session.query(ArtworkCard).count() == 0

    def test_rename_column(self, client, board):
        resp = client.patch(f"/api/artwork/columns/{board[1].id}", json={"name": "Artists"})
        assert resp.json()["name"] == "Artists"

    def test_card_counts(self, client, board):
        _card(client, board[0].id, "A")
        cols = client.get("/api/artwork/columns").json()
        assert cols[0]["card_count"] == 1
        assert cols[1]["card_count"] == 0


# ── Cards ────────────────────────────────────────────────────────────


class TestCards:
    def test_cards_append_in_order(self, client, board):
        col = board[0].id
        for title in ("A", "B", "C"):
            _card(client, col, title)
        assert _positions(client, col) == [("A", 0), ("B", 1), ("C", 2)]

    def test_insert_at_position(self, client, board):
        col = board[0].id
        _card(client, col, "A")
        _card(client, col, "B")
        _card(client, col, "First", position=0)
        assert _positions(client, col) == [("First", 0), ("A", 1), ("B", 2)]

    def test_card_links(self, client, board, test_order, test_company):
        data = _card(client, board[0].id, "Logo proof", order_id=test_order.id, company_id=test_company.id)
        assert data["order_number"] == test_order.order_number
        assert data["company_name"] == test_company.name
        assert data["priority"] == "medium"

    def test_unknown_column_404(self, client):
        resp = client.post("/api/artwork/cards", json={"title": "X", "column_id": 999})
        assert resp.status_code == 404

    def test_invalid_priority_422(self, client, board):
        resp = client.post("/api/artwork/cards", json={"title": "X", "column_id": board[0].id, "priority": "asap"})
        assert resp.status_code == 422

    def test_move_across_columns_keeps_positions_contiguous(self, client, board):
        src, dst = board[0].id, board[1].id
        a = _card(client, src, "A")
        _card(client, src, "B")
        _card(client, src, "C")
        _card(client, dst, "X")
        _card(client, dst, "Y")

        resp = client.patch(f"/api/artwork/cards/{a['id']}/move", json={"column_id": dst, "position": 1})
        assert resp.status_code == 200
        assert resp.json()["column_id"] == dst
        assert _positions(client, src) == [("B", 0), ("C", 1)]
        assert _positions(client, dst) == [("X", 0), ("A", 1), ("Y", 2)]

    def test_move_within_column(self, client, board):
        col = board[0].id
        _card(client, col, "A")
        _card(client, col, "B")
        c = _card(client, col, "C")
        client.patch(f"/api/artwork/cards/{c['id']}/move", json={"column_id": col, "position": 0})
        assert _positions(client, col) == [("C", 0), ("A", 1), ("B", 2)]

    def test_move_position_clamped(self, client, board):
        a = _card(client, board[0].id, "A")
        _card(client, board[1].id, "X")
        client.patch(f"/api/artwork/cards/{a['id']}/move", json={"column_id": board[1].id, "position": 99})
        assert _positions(client, board[1].id) == [("X", 0), ("A", 1)]

    def test_negative_position_422(self, client, board):
        a = _card(client, board[0].id, "A")
        resp = client.patch(f"/api/artwork/cards/{a['id']}/move", json={"column_id": board[0].id, "position": -1})
        assert resp.status_code == 422

    def test_delete_renumbers(self, client, board):
        col = board[0].id
        _card(client, col, "A")
        b = _card(client, col, "B")
        _card(client, col, "C")
        assert client.delete(f"/api/artwork/cards/{b['id']}").status_code == 204
        assert _positions(client, col) == [("A", 0), ("C", 1)]

    def test_comments(self, client, board, test_user):
        a = _card(client, board[0].id, "A")
        first = client.post(f"/api/artwork/cards/{a['id']}/comments", json={"text": "Needs PMS 186"})
        assert first.status_code == 201
        assert first.json()["user_id"] == test_user.id
        client.post(f"/api/artwork/cards/{a['id']}/comments", json={"text": "Fixed"})
        cards = client.get("/api/artwork/cards", params={"column_id": board[0].id}).json()
        assert [c["text"] for c in cards[0]["comments"]] == ["Needs PMS 186", "Fixed"]

    def test_update_checklist(self, client, board):
        a = _card(client, board[0].id, "A")
        resp = client.patch(
            f"/api/artwork/cards/{a['id']}",
            json={"checklist": [{"text": "Vectorize"}, {"text": "Proof", "done": True}]},
        )
        assert resp.json()["checklist"] == [
            {"text": "Vectorize", "done": False},
            {"text": "Proof", "done": True},
        ]

    def test_update_unknown_links_404(self, client, board, manager_user):
        a = _card(client, board[0].id, "A")
        url = f"/api/artwork/cards/{a['id']}"
        assert client.patch(url, json={"assigned_user_id": 999}).status_code == 404
        assert client.patch(url, json={"order_id": 999}).status_code == 404
        assert client.patch(url, json={"company_id": 999}).status_code == 404
        assert client.post(
            "/api/artwork/cards", json={"title": "B", "column_id": board[0].id, "assigned_user_id": 999}
        ).status_code == 404
        resp = client.patch(url, json={"assigned_user_id": manager_user.id})
        assert resp.status_code == 200
        assert resp.json()["assigned_user_id"] == manager_user.id
