"""VelociGo API service entrypoint."""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from packages.shared.logging_config import setup_logging
from services.api.app.db.init_db import init_db
from services.api.app.routers.catalog import router as catalog_router
from services.api.app.routers.order import router as order_router
from starlette.exceptions import HTTPException

app = FastAPI(title="VelociGo API")

app.include_router(order_router)
app.include_router(catalog_router)


@app.exception_handler(HTTPException)
async def _http_error(request: Request, exc: HTTPException) -> JSONResponse:
    del request
    message = exc.detail if isinstance(exc.detail, str) else "Internal error"
    if exc.status_code == 405:
        message = "Method not allowed"
    return JSONResponse(status_code=exc.status_code, content={"error": message})


@app.exception_handler(RequestValidationError)
async def _validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    del request, exc
    return JSONResponse(status_code=400, content={"error": "Invalid payload"})


@app.on_event("startup")
def _startup() -> None:
    setup_logging()
    init_db()


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}
