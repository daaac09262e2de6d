import json
from urllib.parse import urlencode

import anyio
import pytest
from sqlalchemy.exc import SQLAlchemyError

from app.main import app
from database import get_db
from security import current_user


def _call_app(method: str, path: str, body=None, query=None):
    payload = json.dumps(body).encode() if body is not None else b""
    query_string = urlencode(query or {}).encode()

    async def _request():
        scope = {
            "type": "http",
            "http_version": "1.1",
            "method": method.upper(),
            "path": path,
            "raw_path": path.encode(),
            "query_string": query_string,
            "headers": [
                (b"host", b"testserver"),
                (b"content-type", b"application/json"),
                (b"content-length", str(len(payload)).encode()),
            ],
            "client": ("testclient", 50000),
            "server": ("testserver", 80),
            "scheme": "http",
        }

        response_status = 500
        response_body = bytearray()
        sent = False

        async def receive():
            nonlocal sent
            if sent:
                return {"type": "http.disconnect"}
            sent = True
            return {"type": "http.request", "body": payload, "more_body": False}

        async def send(message):
            nonlocal response_status
            if message["type"] == "http.response.start":
                response_status = message["status"]
            elif message["type"] == "http.response.body":
                response_body.extend(message.get("body", b""))

        await app(scope, receive, send)
        return response_status, json.loads(bytes(response_body) or b"null")

    return anyio.run(_request)


@pytest.fixture()
def client(db_session, campus):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    def login_as(user):
        app.dependency_overrides[current_user] = lambda: user

    login_as(campus.admin)
    try:
        yield _call_app, login_as
    finally:
        app.dependency_overrides.clear()


def test_requires_session(db_session):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    try:
        status, body = _call_app("GET", "/items")
    finally:
        app.dependency_overrides.clear()
    assert status == 401
    assert body == {"detail": "Not authenticated"}


def test_transfer_endpoint_accepts_source_and_destination(client, campus, make_item):
    call, _ = client
    chair_id = make_item(campus.room_a, "Chair", 10).id

    status, body = call(
        "POST",
        "/transfers",
        {
            "item_id": chair_id,
            "source_room_id": campus.room_a,
            "destination_room_id": campus.room_b,
            "quantity": 4,
            "notes": "moving day",
        },
    )

    assert status == 201
    assert body["from_room_name"] == "Room A"
    assert body["to_room_name"] == "Room B"
    assert body["transferred_by_user_id"] == campus.admin.id
    assert body["transferred_by_name"] == "Admin"
    assert body["quantity"] == 4

    status, rows = call("GET", "/transfers", query={"source_room_id": campus.room_a})
    assert status == 200
    assert [r["id"] for r in rows] == [body["id"]]

    status, history = call("GET", "/history", query={"action_type": "transfer"})
    assert status == 200
    assert history[0]["notes"] == "moving day"


def test_insufficient_quantity_maps_to_400(client, campus, make_item):
    call, _ = client
    chair_id = make_item(campus.room_a, "Chair", 10).id

    status, body = call(
        "POST",
        "/transfers",
        {"item_id": chair_id, "from_room_id": campus.room_a, "to_room_id": campus.room_b, "quantity": 50},
    )

    assert status == 400
    assert body == {
        "message": "Not enough items to transfer. Available: 10",
        "code": "insufficient_quantity",
        "available": 10,
    }


@pytest.mark.parametrize(
    "body",
    [
        {"quantity": 1},
        {"item_id": 1, "from_room_id": 1, "to_room_id": 2, "quantity": "many"},
    ],
)
def test_bad_transfer_payload_is_a_validation_error(client, body):
    call, _ = client
    status, response = call("POST", "/transfers", body)
    assert status == 400
    assert response["code"] == "validation_error"


def test_item_lifecycle_over_http(client, campus):
    call, _ = client

    status, item = call(
        "POST",
        "/items",
        {"name": "Whiteboard", "category_id": 7, "room_id": campus.room_a, "quantity": 2},
    )
    assert status == 201
    assert item["category_name"] == "Teaching Aids"
    assert item["school_name"] == "SD Harapan"

    status, item = call(
        "PUT",
        f"/items/{item['id']}",
        {"name": "Whiteboard", "category_id": 7, "room_id": campus.room_a, "quantity": 1},
    )
    assert status == 200
    assert item["quantity"] == 1

    status, body = call("DELETE", f"/items/{item['id']}")
    assert status == 200
    assert body["message"] == f"Item {item['id']} deleted successfully"

    status, history = call("GET", "/history", query={"room_id": campus.room_a})
    assert [h["action_type"] for h in history] == ["delete", "update", "add"]


def test_delete_with_transfers_maps_to_400(client, campus, make_item):
    call, _ = client
    chair_id = make_item(campus.room_a, "Chair", 10).id
    call(
        "POST",
        "/transfers",
        {"item_id": chair_id, "from_room_id": campus.room_a, "to_room_id": campus.room_b, "quantity": 1},
    )

    status, body = call("DELETE", f"/items/{chair_id}")

    assert status == 400
    assert body["code"] == "item_has_transfers"


def test_missing_item_maps_to_404(client, campus):
    call, _ = client
    status, body = call(
        "PUT", "/items/999", {"name": "X", "category_id": 1, "room_id": campus.room_a}
    )
    assert status == 404
    assert body == {"message": "Item not found", "code": "not_found"}


def test_scope_denial_maps_to_403(client, campus, make_item):
    call, login_as = client
    item_id = make_item(campus.room_c, "Chair", 3).id
    make_item(campus.room_a, "Desk", 2)
    login_as(campus.kepala)

    status, body = call(
        "PUT", f"/items/{item_id}", {"name": "Chair", "category_id": 1, "room_id": campus.room_c}
    )
    assert status == 403
    assert body["code"] == "forbidden"

    status, items = call("GET", "/items")
    assert status == 200
    assert [i["name"] for i in items] == ["Desk"]


def test_storage_failure_is_not_leaked(client, campus, make_item, monkeypatch):
    call, _ = client
    chair_id = make_item(campus.room_a, "Chair", 10).id

    def boom(*args, **kwargs):
        raise SQLAlchemyError("database is locked: /var/lib/inventory.db")

    monkeypatch.setattr("utils.transfers.write_history", boom)

    status, body = call(
        "POST",
        "/transfers",
        {"item_id": chair_id, "from_room_id": campus.room_a, "to_room_id": campus.room_b, "quantity": 1},
    )

    assert status == 500
    assert body == {"message": "The change could not be saved", "code": "persistence_error"}


def test_reference_lists(client):
    call, _ = client
    status, statuses = call("GET", "/reference/room-statuses")
    assert status == 200
    assert [s["name"] for s in statuses] == ["Available", "Maintenance", "Unavailable"]

    status, categories = call("GET", "/reference/categories")
    assert len(categories) == 10
    assert categories[0]["name"] == "Furniture"


def test_unknown_history_action_type_returns_empty_list(client, campus, make_item):
    call, _ = client
    chair_id = make_item(campus.room_a, "Chair", 10).id
    call(
        "POST",
        "/transfers",
        {"item_id": chair_id, "from_room_id": campus.room_a, "to_room_id": campus.room_b, "quantity": 1},
    )

    status, rows = call("GET", "/history", query={"action_type": "ADD"})

    assert status == 200
    assert rows == []


def test_failed_login_has_message_body(db_session):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    try:
        status, body = _call_app(
            "POST", "/auth/login", {"phone": "0899999", "password": "nobody"}
        )
    finally:
        app.dependency_overrides.clear()

    assert status == 401
    assert body == {
        "message": "Invalid phone number or password",
        "code": "invalid_credentials",
    }
