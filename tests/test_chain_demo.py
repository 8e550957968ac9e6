import pytest

from sweb.chain_demo import ADMIN_TOKEN, API_TOKEN, auth, build_app, cors, logger, main
from sweb.context import RequestCtx
from sweb.response import ResponseBuilder


def _request(method, target, authorization=None):
    headers = [] if authorization is None else [("Authorization", authorization)]
    return RequestCtx.from_raw(method, target, headers)


async def _ok_endpoint(ctx):
    return ResponseBuilder().status(200).body("inner")


@pytest.mark.asyncio
async def test_root_is_public_and_has_cors_headers():
    response = await build_app().dispatch(_request("GET", "/"))
    assert response.status == 200
    assert response.text == "Welcome to s_web!"
    assert response.headers["Access-Control-Allow-Origin"] == "*"


@pytest.mark.asyncio
async def test_health_returns_json():
    response = await build_app().dispatch(_request("GET", "/health"))
    assert response.status == 200
    assert response.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_api_requires_token():
    response = await build_app().dispatch(_request("GET", "/api/users"))
    assert response.status == 401
    assert response.json() == {"error": "Unauthorized"}
    assert response.headers["Access-Control-Allow-Origin"] == "*"


@pytest.mark.asyncio
async def test_api_with_token():
    app = build_app()
    response = await app.dispatch(_request("GET", "/api/users", f"Bearer {API_TOKEN}"))
    assert response.status == 200
    assert response.json() == {"users": ["alice", "bob"]}

    created = await app.dispatch(_request("POST", "/api/users", f"Bearer {API_TOKEN}"))
    assert created.json() == {"message": "User created"}


@pytest.mark.asyncio
async def test_admin_rejects_api_token():
    response = await build_app().dispatch(
        _request("GET", "/admin/dashboard", f"Bearer {API_TOKEN}")
    )
    assert response.status == 401


@pytest.mark.asyncio
async def test_admin_routes_with_admin_token():
    app = build_app()
    dashboard = await app.dispatch(
        _request("GET", "/admin/dashboard", f"Bearer {ADMIN_TOKEN}")
    )
    assert dashboard.text == "Admin Dashboard"

    deleted = await app.dispatch(
        _request("DELETE", "/admin/users/123", f"Bearer {ADMIN_TOKEN}")
    )
    assert deleted.status == 200
    assert deleted.text == "Deleted user 123"


@pytest.mark.asyncio
async def test_auth_passes_matching_bearer():
    ctx = _request("GET", "/x", "Bearer token")
    response = await auth("token", ctx, _ok_endpoint)
    assert response.text == "inner"


@pytest.mark.asyncio
async def test_auth_rejects_without_bearer_scheme():
    ctx = _request("GET", "/x", "token")
    response = await auth("token", ctx, _ok_endpoint)
    assert response.status == 401


@pytest.mark.asyncio
async def test_cors_sets_allowed_methods():
    response = await cors(_request("GET", "/x"), _ok_endpoint)
    assert response.headers["Access-Control-Allow-Methods"] == "GET, POST, PUT, DELETE, OPTIONS"
    assert response.text == "inner"


@pytest.mark.asyncio
async def test_logger_passes_response_and_prints(capsys):
    response = await logger("Probe", _request("GET", "/probe"), _ok_endpoint)
    assert response.text == "inner"
    out = capsys.readouterr().out
    assert "[Probe]" in out
    assert "/probe" in out


def test_main_rejects_bad_address():
    with pytest.raises(ValueError):
        main(["--addr", "not-an-address"])