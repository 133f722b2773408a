# app/main.py
from contextlib import asynccontextmanager
import logging
import sys
from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from motor.motor_asyncio import AsyncIOMotorClient

from app.core.config import settings
from app.core.errors import DomainError
from app.database.mongo_assignment import MongoAssignmentRepository
from app.database.mongo_submission import MongoSubmissionRepository
from app.database.mongo_user import MongoUserDirectory
from app.routers.v1 import analytics
from app.routers.v1 import assignment
from app.routers.v1 import health
from app.routers.v1 import submission

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s :: %(message)s",
    stream=sys.stdout,
)

logger = logging.getLogger("coursework")

STATUS_BY_KIND = {
    "validation_error": status.HTTP_400_BAD_REQUEST,
    "not_found": status.HTTP_404_NOT_FOUND,
    "forbidden": status.HTTP_403_FORBIDDEN,
    "invalid_state": status.HTTP_409_CONFLICT,
    "conflict": status.HTTP_409_CONFLICT,
}


def _error_body(kind: str, message: str, reason) -> dict:
    return {"success": False, "kind": kind, "message": message, "reason": reason}


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    code = STATUS_BY_KIND.get(exc.kind, status.HTTP_400_BAD_REQUEST)
    logger.debug("%s %s -> %s (%s)", request.method, request.url.path, code, exc.kind)
    return JSONResponse(
        status_code=code,
        content=jsonable_encoder(_error_body(exc.kind, exc.message, exc.reason)),
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=jsonable_encoder(
            _error_body("validation_error", "Invalid request payload", {"errors": exc.errors()})
        ),
    )


def create_app() -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        client = AsyncIOMotorClient(settings.mongo_uri, uuidRepresentation="standard", tz_aware=True)
        db = client[settings.mongo_db_name]

        assignment_repo = MongoAssignmentRepository(db)
        submission_repo = MongoSubmissionRepository(db)
        await assignment_repo.ensure_indexes()
        await submission_repo.ensure_indexes()

        app.state.assignment_repo = assignment_repo
        app.state.submission_repo = submission_repo
        app.state.user_directory = MongoUserDirectory(db)
        logger.info("Repositories ready", extra={"db": settings.mongo_db_name, "env": settings.env})

        try:
            yield
        finally:
            client.close()

    app = FastAPI(
        title="Coursework Microservice",
        description="Assignment lifecycle, student submissions, reviews and analytics",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"], allow_credentials=True,
        allow_methods=["*"], allow_headers=["*"],
    )

    app.add_exception_handler(DomainError, domain_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)

    app.include_router(health.router,     prefix="/api/v1", tags=["health"])
    app.include_router(assignment.router, prefix="/api/v1", tags=["assignments"])
    app.include_router(submission.router, prefix="/api/v1", tags=["submissions"])
    app.include_router(analytics.router,  prefix="/api/v1", tags=["analytics"])
    return app

app = create_app()
