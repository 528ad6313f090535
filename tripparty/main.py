# tripparty/main.py
import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from tripparty.core.config import CORS_ORIGINS, DATABASE_URL
from tripparty.core.database import Database
from tripparty.core.errors import AppError
from tripparty.routes import advisor, auth, destinations, messages, parties
from tripparty.services.advisor_client import AdvisorClient

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("tripparty")
logger.setLevel(logging.INFO)


def create_app(database: Optional[Database] = None, advisor_client: Optional[AdvisorClient] = None) -> FastAPI:
    app = FastAPI(title="TripParty")
    app.state.database = database or Database(DATABASE_URL)
    app.state.advisor_client = advisor_client or AdvisorClient()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.category, "detail": exc.message},
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={"error": "ValidationError", "detail": jsonable_encoder(exc.errors())},
        )

    @app.exception_handler(SQLAlchemyError)
    async def database_error_handler(request: Request, exc: SQLAlchemyError):
        logger.error(f"Database error on {request.method} {request.url.path}: {exc}", exc_info=exc)
        return JSONResponse(
            status_code=500,
            content={"error": "Internal", "detail": "Internal server error"},
        )

    app.include_router(auth.router)
    # /my must be registered before /{party_id}; both live in parties.router
    app.include_router(parties.router)
    app.include_router(messages.router)
    app.include_router(messages.dm_router)
    app.include_router(advisor.router)
    app.include_router(destinations.router)

    @app.get("/")
    def health():
        return {"status": "ok"}

    @app.on_event("startup")
    def on_startup():
        app.state.database.create_all()

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("tripparty.main:app", host="0.0.0.0", port=8000)
