# sweb

A small HTTP/1.x framework built on asyncio and the standard library alone.
It provides:

- a trie-based router with named parameters (`/users/:id`) and catch-all
  wildcards (`/static/*filepath`);
- route groups that share a path prefix and have their own middleware;
- middleware written as plain functions `(ctx, next)`;
- handlers, sync or async, that return whatever is convenient: text, bytes,
  JSON-like values, `None` for an empty 204 reply, a `(status, content)` or
  `(status, content_type, content)` tuple, or any object with an
  `into_response()` method;
- startup and shutdown hooks;
- an OpenAPI 3 document and a Swagger UI page, served at
  `/docs/swagger.json` and `/docs/` once the server starts.

## Installation

```
pip install sweb
```

To run the test suite:

```
pip install "sweb[test]"
pytest
```

## A first application

```python
import asyncio

from sweb.engine import Engine


async def hello(ctx):
    return "Hello, World!"


def show_user(ctx):
    return {"id": ctx.get_param("id")}


app = Engine()
app.get("/", hello).get("/users/:id", show_user)

asyncio.run(app.run("127.0.0.1:3000"))
```

`run` takes an `ip:port` address (`[ipv6]:port` for IPv6), runs the startup
hooks, and serves until Ctrl+C. It then stops accepting connections, runs the
shutdown hooks and waits up to ten seconds for open connections to finish.

`Engine.dispatch(ctx)` routes a single request through the middleware to its
handler without any network, which is handy in tests:

```python
from sweb.context import RequestCtx

response = await app.dispatch(RequestCtx.from_raw("GET", "/users/7"))
response.status   # 200
response.json()   # {"id": "7"}
```

## Request context

Every handler receives a `sweb.context.RequestCtx` with `method`, `path`,
`query`, `headers` and `params`; `header(name)` reads one header. Route
parameters are read with `get_param` and `has_param`, and middleware can add
its own with `add_param` or `add_params`. The body is read in full before the
handler runs and is available through `body_bytes()`, `body_string()` and
`body_json()` (each gives `None` when there is no body), or through `json()`,
which raises `ValueError` when the body is missing.

## Responses

Build responses explicitly with `sweb.response.ResponseBuilder`:

```python
from sweb.response import ResponseBuilder

ResponseBuilder().status(201).content_type("application/json").body('{"ok": true}')
ResponseBuilder.html("<h1>Hi</h1>")
ResponseBuilder.not_found()
ResponseBuilder.internal_error()
ResponseBuilder.no_content()
```

A `Response` has `status`, `headers`, `body` (bytes), and the helpers
`reason`, `text` and `json()`. Every handler result goes through
`sweb.response.into_response`. An exception raised by a handler becomes a
500 response with the body `Error: <message>`.

## Middleware and groups

```python
async def cors(ctx, next):
    response = await next(ctx)
    response.headers["Access-Control-Allow-Origin"] = "*"
    return response


app.use_middleware(cors)

api = app.group("/api")
api.use_middleware(cors)
api.get("/users", list_users).post("/users", create_user)
```

Global middleware runs first, then the group's, then the handler. A request
whose path starts with a group's prefix is handled by that group alone; the
longest matching prefix wins. `sweb.middleware.execute_chain` and `into_next`
are available for running a chain by hand.

## Lifecycle hooks

```python
async def connect():
    ...

def disconnect():
    ...

app.on_startup(connect).on_shutdown(disconnect)
```

## API documentation

Routes without explicit documentation get a generated operation. Attach your
own with the `sweb.swagger.swagger()` builder:

```python
from sweb.swagger import swagger

info = (
    swagger()
    .summary("Create a new user")
    .tag("User")
    .request_body({"name": "New User", "email": "newuser@example.com"})
    .json_response("201", "User created", {"id": 3})
    .build()
)
app.post_with_swagger("/users", create_user, info)
```

`bearer_auth()`, `success_responses()` and `crud_responses()` add common
entries in one call. `generate_enhanced_swagger_json` and
`generate_swagger_ui` can also be called directly.

## Demo servers

Two demo applications are installed as commands; both accept
`--addr ip:port` (default `127.0.0.1:8080`):

```
sweb-chain-demo
sweb-custom-response-demo
```

The first shows chained global and group middleware: logging, CORS headers,
and bearer authentication (`Authorization: Bearer token` for `/api`,
`Authorization: Bearer secret` for `/admin`). The second shows handlers
returning custom response objects, pagination and application errors.

## What it does not do

The server speaks plain HTTP/1.0 and 1.1 only: no TLS, no HTTP/2, no
WebSockets, and no streaming of request or response bodies. It does not serve
static files, parse query strings into parameters, or provide sessions or
storage.