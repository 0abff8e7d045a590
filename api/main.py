"""FastAPI application entry point."""

import logging

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded

from api.errors import register_exception_handlers
from api.limiter import limiter, rate_limit_exceeded_handler
from api.routes import blackjack
from config import config

logging.basicConfig(level=config.logging.level, format=config.logging.format)

app = FastAPI(
    title="Blackjack Table",
    description="Server-side blackjack engine with persistent, stateless game handling",
    version="0.1.0",
    debug=config.debug,
)

# Add rate limiter to app state and exception handler
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
register_exception_handlers(app)

# CORS middleware with configurable origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.cors.allowed_origins,
    allow_credentials=config.cors.allow_credentials,
    allow_methods=config.cors.allow_methods,
    allow_headers=config.cors.allow_headers,
)


@app.get("/api/health")
@limiter.limit(f"{config.rate_limit.requests_per_minute}/minute")
async def health_check(request: Request) -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}


app.include_router(blackjack.router, prefix="/api/blackjack", tags=["blackjack"])


def run() -> None:
    """Serve the app with uvicorn."""
    uvicorn.run("api.main:app", host=config.host, port=config.port, reload=config.debug)
