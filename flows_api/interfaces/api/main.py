# flows_api/interfaces/api/main.py
from __future__ import annotations

from collections.abc import AsyncGenerator
from concurrent.futures import ThreadPoolExecutor
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from flows_api.infrastructure.config import get_settings


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    from flows_api.infrastructure.http_client import close_client
    from flows_api.interfaces.api.dependencies import get_controller

    # Single worker: at most one in-flight request per source.
    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="flows-load")
    controller = get_controller()
    controller.start(executor)  # initial load, once per process
    yield
    controller.close()
    executor.shutdown(wait=False)
    close_client()


app = FastAPI(
    title="Flows Sankey",
    debug=get_settings().debug,
    lifespan=lifespan,
    docs_url="/api/docs",
    redoc_url=None,
)


@app.middleware("http")
async def add_security_headers(request: Request, call_next: object) -> Response:
    response = await call_next(request)  # type: ignore[misc]
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    return response  # type: ignore[return-value]


app.add_middleware(
    CORSMiddleware,
    allow_origins=list(get_settings().cors_origins),
    allow_methods=["GET"],
    allow_headers=["*"],
)

from flows_api.interfaces.api.routes.graph_routes import router as graph_router  # noqa: E402
from flows_api.interfaces.api.routes.view_routes import router as view_router  # noqa: E402

app.include_router(graph_router, prefix="/api")
app.include_router(view_router)
