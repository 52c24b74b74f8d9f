from __future__ import annotations

from typing import Annotated

from fastapi import Cookie, Depends, FastAPI, Header, HTTPException, Query
from fastapi.testclient import TestClient
from pydantic import BaseModel, Field

from toid import OidStr, TOIDError, parse

from .conftest import OrgId, OrgIdFactory, UserId, UserIdFactory


parse_user_id = parse(UserId)
parse_org_id = parse(OrgId)


# FastAPI validators - parameter names must match route parameters
def validate_user_id(user_id: str) -> UserId:
    try:
        return parse_user_id(user_id)
    except TOIDError as e:
        raise HTTPException(422, f"Invalid user ID: {e}") from None


def validate_org_id(org_id: str) -> OrgId:
    try:
        return parse_org_id(org_id)
    except TOIDError as e:
        raise HTTPException(422, f"Invalid org ID: {e}") from None


class User(BaseModel):
    id: UserId = Field(default_factory=UserIdFactory)
    name: str
    org_id: OrgId | None = None


class Event(BaseModel):
    subject: OidStr
    action: str


app = FastAPI()
users: dict[str, User] = {}


@app.post("/users")
def create_user(name: str, org_id: str | None = None) -> User:
    parsed_org_id = validate_org_id(org_id) if org_id else None
    user = User(name=name, org_id=parsed_org_id)
    users[str(user.id)] = user
    return user


@app.get("/users/{user_id}")
def get_user(user_id: Annotated[UserId, Depends(validate_user_id)]) -> User:
    if str(user_id) not in users:
        raise HTTPException(404, "User not found")
    return users[str(user_id)]


@app.get("/users")
def list_users(org_id: Annotated[str | None, Query()] = None) -> list[User]:
    if org_id is None:
        return list(users.values())
    parsed_org_id = validate_org_id(org_id)
    return [u for u in users.values() if u.org_id == parsed_org_id]


@app.post("/users/from-json")
def create_user_from_json(user: User) -> User:
    users[str(user.id)] = user
    return user


@app.post("/events")
def record_event(event: Event) -> Event:
    return event


def validate_user_id_header(x_user_id: Annotated[str, Header()]) -> UserId:
    return validate_user_id(x_user_id)


@app.get("/me")
def get_current_user(
    user_id: Annotated[UserId, Depends(validate_user_id_header)],
) -> User:
    if str(user_id) not in users:
        raise HTTPException(404, "User not found")
    return users[str(user_id)]


def validate_user_id_cookie(session_user_id: Annotated[str, Cookie()]) -> UserId:
    return validate_user_id(session_user_id)


@app.get("/session")
def get_session(
    user_id: Annotated[UserId, Depends(validate_user_id_cookie)],
) -> User:
    if str(user_id) not in users:
        raise HTTPException(404, "User not found")
    return users[str(user_id)]


client = TestClient(app)


class TestFastAPIPathParams:
    def setup_method(self) -> None:
        users.clear()

    def test_valid_user_id_in_path(self) -> None:
        user_id = client.post("/users?name=Alice").json()["id"]

        response = client.get(f"/users/{user_id}")
        assert response.status_code == 200
        assert response.json()["name"] == "Alice"

    def test_lowercase_value_in_path_is_accepted(self) -> None:
        user_id = client.post("/users?name=Alice").json()["id"]
        prefix, _, value = user_id.rpartition("-")

        response = client.get(f"/users/{prefix}-{value.lower()}")
        assert response.status_code == 200
        assert response.json()["id"] == user_id

    def test_invalid_user_id_format_returns_422(self) -> None:
        response = client.get("/users/not_a_valid_id")
        assert response.status_code == 422

    def test_wrong_prefix_returns_422(self) -> None:
        response = client.get(f"/users/{OrgIdFactory()}")
        assert response.status_code == 422
        assert "Expected prefix 'USR'" in response.text

    def test_user_not_found_returns_404(self) -> None:
        response = client.get(f"/users/{UserIdFactory()}")
        assert response.status_code == 404


class TestFastAPIQueryParams:
    def setup_method(self) -> None:
        users.clear()

    def test_filter_by_org_id(self) -> None:
        org1 = OrgIdFactory()
        org2 = OrgIdFactory()

        client.post(f"/users?name=Alice&org_id={org1}")
        client.post(f"/users?name=Bob&org_id={org1}")
        client.post(f"/users?name=Charlie&org_id={org2}")

        assert len(client.get(f"/users?org_id={org1}").json()) == 2
        assert len(client.get(f"/users?org_id={org2}").json()) == 1

    def test_invalid_org_id_returns_422(self) -> None:
        response = client.get("/users?org_id=invalid")
        assert response.status_code == 422


class TestFastAPIJsonBody:
    def setup_method(self) -> None:
        users.clear()

    def test_user_creation_generates_id(self) -> None:
        data = client.post("/users?name=Alice").json()
        assert data["id"].startswith("USR-")
        assert len(data["id"]) == 30  # USR- + 26 chars

    def test_valid_oids_in_json_body(self) -> None:
        user_id = UserIdFactory()
        org_id = OrgIdFactory()

        response = client.post(
            "/users/from-json",
            json={"id": str(user_id), "name": "Alice", "org_id": str(org_id)},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["id"] == str(user_id)
        assert data["org_id"] == str(org_id)

    def test_invalid_oid_in_body_returns_422(self) -> None:
        response = client.post("/users/from-json", json={"id": "not_valid", "name": "Bob"})

        assert response.status_code == 422
        assert "id" in response.text

    def test_wrong_prefix_in_body_returns_422(self) -> None:
        response = client.post(
            "/users/from-json",
            json={"id": str(UserIdFactory()), "name": "Dave", "org_id": str(UserIdFactory())},
        )
        assert response.status_code == 422

    def test_oidstr_in_body_accepts_any_prefix(self) -> None:
        subject = str(OidStr.new_v7("DOC"))

        response = client.post("/events", json={"subject": subject, "action": "open"})

        assert response.status_code == 200
        assert response.json()["subject"] == subject


class TestFastAPIHeadersAndCookies:
    def setup_method(self) -> None:
        users.clear()

    def test_valid_user_id_in_header(self) -> None:
        user_id = client.post("/users?name=Alice").json()["id"]

        response = client.get("/me", headers={"X-User-Id": user_id})
        assert response.status_code == 200
        assert response.json()["name"] == "Alice"

    def test_wrong_prefix_in_header_returns_422(self) -> None:
        response = client.get("/me", headers={"X-User-Id": str(OrgIdFactory())})
        assert response.status_code == 422

    def test_missing_header_returns_422(self) -> None:
        assert client.get("/me").status_code == 422

    def test_valid_user_id_in_cookie(self) -> None:
        user_id = client.post("/users?name=Bob").json()["id"]

        response = client.get("/session", cookies={"session_user_id": user_id})
        assert response.status_code == 200
        assert response.json()["name"] == "Bob"

    def test_invalid_user_id_in_cookie_returns_422(self) -> None:
        response = client.get("/session", cookies={"session_user_id": "bad_cookie"})
        assert response.status_code == 422

    def test_user_not_found_via_cookie_returns_404(self) -> None:
        response = client.get("/session", cookies={"session_user_id": str(UserIdFactory())})
        assert response.status_code == 404
