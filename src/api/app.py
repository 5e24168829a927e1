from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from src.api.error import ClientError, client_error_handler
from src.api.routes import autoscaling, wallets


def create_app(config) -> FastAPI:
    """Create the admin API application"""
    app = FastAPI(
        title="Hosting Autoscaling Service",
        description="Autoscaling sweeps, scaling history and wallet balances",
        version="1.0.0",
    )

    if config.CORS_ORIGINS:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=config.CORS_ORIGINS,
            allow_credentials=config.CORS_ALLOW_CREDENTIALS,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.add_exception_handler(ClientError, client_error_handler)

    app.include_router(autoscaling.router, prefix=config.API_PREFIX)
    app.include_router(wallets.router, prefix=config.API_PREFIX)

    @app.get("/health", tags=["Health"])
    async def health():
        return {"status": "ok"}

    return app
