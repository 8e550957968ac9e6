import pytest

from sweb.context import RequestCtx
from sweb.custom_response_demo import (
    ApiResponse,
    AppError,
    ErrorKind,
    PaginatedResponse,
    Pagination,
    build_app,
    get_mock_users,
    get_user_stats,
    main,
)


def _get(target):
    return RequestCtx.from_raw("GET", target)


def test_success_envelope():
    response = ApiResponse.success({"k": "v"}).into_response()
    assert response.status == 200
    assert response.headers["X-Powered-By"] == "s_web Framework"
    assert response.headers["Content-Type"] == "application/json"
    body = response.json()
    assert body["success"] is True
    assert body["data"] == {"k": "v"}
    assert body["message"] == "Success"
    assert body["code"] == 200
    assert body["timestamp"].endswith("Z")


def test_error_envelope_uses_code_as_status():
    response = ApiResponse.error("nope", 404).into_response()
    assert response.status == 404
    body = response.json()
    assert body["success"] is False
    assert body["data"] is None
    assert body["message"] == "nope"


@pytest.mark.parametrize("code", [150, 302, 700])
def test_codes_outside_ranges_map_to_ok(code):
    response = ApiResponse.error("odd", code).into_response()
    assert response.status == 200
    assert response.json()["code"] == code


def test_unserializable_data_gives_serialization_error():
    response = ApiResponse.success({1, 2}).into_response()
    assert response.status == 500
    assert response.text == '{"success":false,"message":"Serialization error"}'


def test_app_error_messages_and_codes():
    assert str(AppError(ErrorKind.NOT_FOUND)) == "Resource not found"
    assert str(AppError(ErrorKind.VALIDATION, "bad")) == "Validation error: bad"
    assert AppError(ErrorKind.UNAUTHORIZED).code == 401
    response = AppError(ErrorKind.UNAUTHORIZED).into_response()
    assert response.status == 401
    assert response.json()["message"] == "Unauthorized access"


def test_paginated_response_headers():
    users = get_mock_users()[:1]
    page = PaginatedResponse(
        items=users,
        pagination=Pagination(page=1, page_size=2, total_pages=1, has_next=False, has_prev=False),
        total=1,
    )
    response = page.into_response()
    assert response.headers["X-Total-Count"] == "1"
    assert response.headers["X-Page-Size"] == "2"
    assert response.json()["items"][0]["name"] == users[0].name


def test_mock_users():
    users = get_mock_users()
    assert [u.id for u in users] == [1, 2, 3, 4]
    assert all(u.email.endswith("@example.com") for u in users)


@pytest.mark.asyncio
async def test_get_users_route():
    response = await build_app().dispatch(_get("/users"))
    assert response.status == 200
    names = [u["name"] for u in response.json()["data"]]
    assert names == [u.name for u in get_mock_users()]


@pytest.mark.asyncio
async def test_get_user_by_id():
    response = await build_app().dispatch(_get("/users/1"))
    assert response.status == 200
    assert response.json()["data"]["name"] == "Alice"


@pytest.mark.asyncio
async def test_missing_user_is_plain_error():
    response = await build_app().dispatch(_get("/users/999"))
    assert response.status == 500
    assert response.text == "Error: Resource not found"


@pytest.mark.asyncio
async def test_invalid_user_id_is_plain_error():
    response = await build_app().dispatch(_get("/users/invalid"))
    assert response.status == 500
    assert response.text == "Error: Validation error: Invalid user ID"


@pytest.mark.asyncio
async def test_first_and_last_pages():
    app = build_app()
    first = await app.dispatch(_get("/users/page/1"))
    body = first.json()
    assert [u["name"] for u in body["items"]] == ["Alice", "Bob"]
    assert body["pagination"]["has_next"] is True
    assert body["pagination"]["has_prev"] is False
    assert first.headers["X-Page"] == "1"
    assert first.headers["X-Total-Count"] == str(len(get_mock_users()))

    second = (await app.dispatch(_get("/users/page/2"))).json()
    assert [u["name"] for u in second["items"]] == ["Charlie", "Diana"]
    assert second["pagination"]["has_next"] is False
    assert second["pagination"]["has_prev"] is True


@pytest.mark.asyncio
async def test_page_past_end_is_empty_and_page_zero_fails():
    app = build_app()
    empty = (await app.dispatch(_get("/users/page/3"))).json()
    assert empty["items"] == []
    zero = await app.dispatch(_get("/users/page/0"))
    assert zero.status == 500
    assert zero.text.startswith("Error:")


@pytest.mark.asyncio
async def test_user_stats():
    result = await get_user_stats(_get("/stats"))
    users = get_mock_users()
    stats = result.data
    assert stats.total_users == len(users)
    assert stats.active_users == len(users) - 1
    assert stats.new_users_today == 2
    assert min(u.age for u in users) <= stats.average_age <= max(u.age for u in users)


@pytest.mark.asyncio
async def test_simulated_errors():
    app = build_app()
    error = await app.dispatch(_get("/error"))
    assert error.status == 500
    assert error.json()["message"] == "Database error occurred"
    missing = await app.dispatch(_get("/notfound"))
    assert missing.status == 404
    assert missing.json()["success"] is False


@pytest.mark.asyncio
async def test_health_route():
    response = await build_app().dispatch(_get("/health"))
    assert response.json()["data"] == "Server is healthy! 🚀"


def test_main_rejects_bad_address():
    with pytest.raises(ValueError):
        main(["--addr", "nowhere"])