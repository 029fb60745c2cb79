"""
ezpay/app.py

FastAPI application entrypoint for the EZPay banking backend.

This module wires together:
- Logging configuration (file-based under LOG_DIR)
- CORS and request logging middleware
- Domain error handlers
- Routers under ezpay/api/ (account holders, beneficiaries, payment
  instructions, UPI accounts & transactions)
"""

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from starlette.requests import Request

from ezpay.api.account_holders import router as account_holders_router
from ezpay.api.beneficiaries import router as beneficiaries_router
from ezpay.api.errors import register_exception_handlers
from ezpay.api.payment_instructions import router as payment_instructions_router
from ezpay.api.upi import router as upi_router
from ezpay.config import settings
from ezpay.db.session import engine, init_db
from ezpay.logging_config import get_logger, setup_logging

# Configure logging before creating the app
setup_logging()
logger = get_logger("ezpay")


def create_app() -> FastAPI:
    app = FastAPI(title=settings.title, version=settings.version)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
        allow_credentials=True,
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """
        Lightweight request logger to help trace API traffic.
        """
        logger.info(
            "HTTP %s %s from %s",
            request.method,
            request.url.path,
            request.client.host if request.client else "?",
        )
        response = await call_next(request)
        logger.info("HTTP %s %s -> %s", request.method, request.url.path, response.status_code)
        return response

    register_exception_handlers(app)

    @app.get("/", response_class=PlainTextResponse)
    async def root():
        return "Welcome to EZPay Banking API!"

    @app.get("/api/health")
    async def health():
        """
        Simple health check endpoint.
        """
        return {"status": "healthy"}

    app.include_router(account_holders_router, prefix="/api")
    app.include_router(beneficiaries_router, prefix="/api")
    app.include_router(payment_instructions_router, prefix="/api")
    app.include_router(upi_router, prefix="/api")

    @app.on_event("startup")
    async def on_startup():
        logger.info("EZPay starting up (database=%s)", engine.url.render_as_string(hide_password=True))
        await init_db()

    @app.on_event("shutdown")
    async def on_shutdown():
        await engine.dispose()
        logger.info("EZPay shutting down")

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run("ezpay.app:app", host=settings.api_host, port=settings.api_port)
