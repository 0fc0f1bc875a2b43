from __future__ import annotations

import logging

import pytest

from conftest import bearer

RECORD = {"a": "1", "b": 2, "c": "3", "password": "123", "metadata": {"a": 4, "b": [5, "6"]}}


def _create(client, data=None):
    response = client.post("/tasks", json=data if data is not None else dict(RECORD))
    assert response.status_code == 201
    return response.json()


def test_create_responds_with_created_record(client):
    response = client.post("/tasks", json=RECORD)

    assert response.status_code == 201
    body = response.json()
    assert body["a"] == "1"
    assert body["b"] == 2
    assert body["c"] == "3"
    assert body["metadata"] == {"a": 4, "b": [5, "6"]}
    assert body["id"]


def test_create_hides_password_and_timestamps_record(client):
    body = _create(client)

    assert "password" not in body
    assert body["createdAt"]
    assert body["createdAt"] == body["updatedAt"]


def test_create_ignores_client_supplied_reserved_fields(client):
    body = _create(client, {"a": 1, "id": "mine", "createdAt": "yesterday", "updatedAt": "never"})

    assert body["id"] != "mine"
    assert body["createdAt"] != "yesterday"
    assert body["updatedAt"] != "never"


def test_show_returns_record(client):
    record = _create(client)

    response = client.get(f"/tasks/{record['id']}")

    assert response.status_code == 200
    body = response.json()
    assert body == record
    assert "password" not in body


def test_show_unknown_record_is_404_without_body(client):
    response = client.get("/tasks/missing")

    assert response.status_code == 404
    assert response.content == b""


def test_list_returns_records_in_creation_order(client):
    first = _create(client, {"description": "Persistent Record"})
    second = _create(client)

    response = client.get("/tasks")

    assert response.status_code == 200
    body = response.json()
    assert isinstance(body, list)
    assert [r["id"] for r in body] == [first["id"], second["id"]]
    assert body[1]["metadata"]["b"] == [5, "6"]
    assert all("password" not in r for r in body)


def test_list_of_empty_table(client):
    response = client.get("/tasks")

    assert response.status_code == 200
    assert response.json() == []


def test_update_merges_fields(client):
    record = _create(client)

    response = client.patch(f"/tasks/{record['id']}", json={"b": 1})

    assert response.status_code == 200
    body = response.json()
    assert body["b"] == 1
    assert body["a"] == "1"
    assert body["c"] == "3"
    assert body["metadata"] == {"a": 4, "b": [5, "6"]}
    assert body["id"] == record["id"]
    assert body["createdAt"] == record["createdAt"]
    assert body["updatedAt"] != record["updatedAt"]
    assert "password" not in body


def test_update_persists(client):
    record = _create(client)
    client.patch(f"/tasks/{record['id']}", json={"b": 1})

    assert client.get(f"/tasks/{record['id']}").json()["b"] == 1


def test_update_unknown_record_is_404(client):
    response = client.patch("/tasks/missing", json={"b": 1})

    assert response.status_code == 404
    assert response.content == b""


def test_replace_drops_previous_fields(client):
    record = _create(client)

    response = client.put(f"/tasks/{record['id']}", json={"b": 3})

    assert response.status_code == 200
    body = response.json()
    assert body["b"] == 3
    for field in ("a", "c", "metadata", "password"):
        assert field not in body
    assert body["id"] == record["id"]
    assert body["createdAt"] == record["createdAt"]
    assert body["updatedAt"] != record["updatedAt"]


def test_replace_unknown_record_is_404(client):
    assert client.put("/tasks/missing", json={"b": 3}).status_code == 404


def test_delete_then_show_and_delete_again(client):
    record = _create(client)

    response = client.delete(f"/tasks/{record['id']}")
    assert response.status_code == 204
    assert response.content == b""

    assert client.get(f"/tasks/{record['id']}").status_code == 404
    assert client.delete(f"/tasks/{record['id']}").status_code == 404


def test_unique_field_conflict(client):
    client.app.state.controllers["tasks"].configure(unique=("username",))

    assert client.post("/tasks", json={"username": "abc", "a": 1}).status_code == 201
    response = client.post("/tasks", json={"username": "abc", "a": 2})

    assert response.status_code == 409
    assert response.content == b""
    assert len(client.get("/tasks").json()) == 1


def test_unique_field_update_on_conflict(client):
    controller = client.app.state.controllers["tasks"]
    controller.configure(unique=("username",))
    created = client.post("/tasks", json={"username": "abc", "a": 1, "keep": True}).json()

    controller.configure(update_on_conflict=True)
    response = client.post("/tasks", json={"username": "abc", "a": 2})

    assert response.status_code == 200
    body = response.json()
    assert body["id"] == created["id"]
    assert body["a"] == 2
    assert body["keep"] is True
    assert body["createdAt"] == created["createdAt"]
    assert body["updatedAt"] != created["updatedAt"]
    assert len(client.get("/tasks").json()) == 1


def test_options_preflight(client):
    response = client.options("/tasks")

    assert response.status_code == 204
    assert response.content == b""


def test_body_must_be_json_object(client):
    response = client.post("/tasks", content=b"[1, 2]", headers={"Content-Type": "application/json"})

    assert response.status_code == 400
    assert response.content == b""


@pytest.mark.parametrize("constant", [b"NaN", b"Infinity", b"-Infinity"])
def test_non_standard_json_constants_are_rejected(client, database, constant):
    response = client.post(
        "/tasks",
        content=b'{"a": ' + constant + b"}",
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 400
    assert response.content == b""
    assert database.writes == []
    assert client.get("/tasks").json() == []


def test_empty_body_creates_empty_record(client):
    response = client.post("/tasks")

    assert response.status_code == 201
    assert set(response.json()) == {"id", "createdAt", "updatedAt"}


def test_internal_error_is_obscured(client, database, monkeypatch, caplog):
    async def broken(table):
        raise RuntimeError("connection lost")

    monkeypatch.setattr(database, "list", broken)

    response = client.get("/tasks")

    assert response.status_code == 500
    assert response.json() == {"code": "INTERNAL_ERROR"}
    assert "connection lost" not in response.text
    [failure] = [r for r in caplog.records if r.levelno == logging.ERROR]
    assert failure.getMessage() == "Tasks.list failed"
    assert failure.exc_info[1].args == ("connection lost",)


class TestWithSession:
    def test_every_operation_requires_a_session(self, protected_client, database):
        calls = [
            protected_client.post("/tasks", json={"a": "1"}),
            protected_client.get("/tasks"),
            protected_client.get("/tasks/some-id"),
            protected_client.patch("/tasks/some-id", json={"a": "2"}),
            protected_client.put("/tasks/some-id", json={"a": "2"}),
            protected_client.delete("/tasks/some-id"),
        ]

        assert [r.status_code for r in calls] == [401] * 6
        assert all(r.content == b"" for r in calls)
        assert database.calls == []

    def test_bad_token_is_unauthorized(self, protected_client):
        response = protected_client.get("/tasks", headers=bearer({"id": "u1"}, secret="other-secret"))

        assert response.status_code == 401

    def test_valid_token_is_authorized(self, protected_client):
        headers = bearer({"id": "u1", "username": "abc"})

        created = protected_client.post("/tasks", json={"a": "1"}, headers=headers)
        listed = protected_client.get("/tasks", headers=headers)

        assert created.status_code == 201
        assert listed.status_code == 200
        assert listed.json()[0]["id"] == created.json()["id"]

    def test_preflight_is_not_gated(self, protected_client):
        assert protected_client.options("/tasks").status_code == 204
