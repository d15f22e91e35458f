# teamboard/main.py

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
import os
import logging

from teamboard.api.auth import router as auth_router
from teamboard.api.realtime import router as realtime_router
from teamboard.api.task import router as task_router
from teamboard.api.team import router as team_router

from teamboard.core.exceptions import BaseAppException
from teamboard.core.security import TokenIssuer
from teamboard.core.settings import settings
from teamboard.schemas.response import ErrorResponse
from teamboard.database import init_db
from teamboard.services.notifier import ChannelRegistry

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("TeamBoard")

app = FastAPI(
    title="TeamBoard API",
    version="1.0.0",
    description="Team task collaboration backend with real-time task events",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth_router)
app.include_router(team_router)
app.include_router(task_router)
app.include_router(realtime_router)

@app.get("/health", tags=["Health"])
def health():
    return {"ok": True}

@app.on_event("startup")
async def startup_event():
    init_db()
    app.state.token_issuer = TokenIssuer.from_settings()
    app.state.notifier = ChannelRegistry()
    logger.info(f"Starting TeamBoard API ({settings.ENV})")

@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Stopping TeamBoard API")

def _error_response(status_code: int, message: str, error: str | None = None, headers=None) -> JSONResponse:
    body = ErrorResponse(message=message, error=error)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True), headers=headers)

@app.exception_handler(BaseAppException)
async def app_exception_handler(request: Request, exc: BaseAppException):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path}: {exc.message}")
    return _error_response(exc.status_code, exc.message)

@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return _error_response(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = errors[0].get("msg", "Validation error") if errors else "Validation error"
    return _error_response(400, message)

@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return _error_response(500, "Internal server error", error=str(exc))

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "teamboard.main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", 8000)),
        reload=settings.DEBUG,
    )
