import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from api.routes.auth import router as auth_router
from api.routes.messages import router as messages_router
from api.routes.input_log import router as input_log_router


from contextlib import asynccontextmanager
from core.config import APP_LOG_FILE, CORS_ORIGINS, get_server_config, split_csv
from loguru import logger

from services.limiting import limiter
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware


@asynccontextmanager
async def lifespan(app: FastAPI):

    # JSON log sink lives as long as the app
    sink_id = logger.add(APP_LOG_FILE, serialize=True)

    config = get_server_config()
    if not config.code_hashes:
        logger.warning("No access codes configured - every code will be rejected")
    logger.info("Storing records under {}", config.data_dir)

    yield     # <- FastAPI is now serving requests

    logger.remove(sink_id)


# FastAPI app
app = FastAPI(
    title="Guestbook & Input Log API",
    lifespan=lifespan,
)


# ---------- SlowAPI -------------
app.state.limiter = limiter
app.add_middleware(SlowAPIMiddleware)

# ---------- CORS ----------
app.add_middleware(
    CORSMiddleware,
    allow_origins=split_csv(CORS_ORIGINS),   # explicit list, no "*"
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    return JSONResponse(
        status_code=429,
        content={"success": False, "message": "Too many requests - slow down"},
    )


@app.exception_handler(RequestValidationError)
async def validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={"success": False, "message": "Invalid request body"},
    )


# ROUTES -----------------------
@app.get("/health")
async def health():
    return {"status": "ok"}

app.include_router(auth_router)
app.include_router(messages_router)
app.include_router(input_log_router)


@app.get("/")
async def root():
    return {"status": "running", "engine": "Guestbook & input log backend"}


if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="debug"
    )
