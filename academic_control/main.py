from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from academic_control.api.v1.attendance.router import router as attendance_router
from academic_control.api.v1.auth.router import router as auth_router
from academic_control.api.v1.classes.classes_router import router as classes_router
from academic_control.api.v1.enrollments.router import router as enrollments_router
from academic_control.api.v1.grades.router import router as grades_router
from academic_control.api.v1.profiles.router import router as profiles_router
from academic_control.api.v1.reports.router import router as reports_router
from academic_control.core import models  # noqa: F401  (registers tables on Base.metadata)
from academic_control.core.config import settings
from academic_control.core.exceptions import ServiceError
from academic_control.core.logging_config import setup_logging
from academic_control.db.session import Base, build_engine, build_sessionmaker


def create_app(database_url: Optional[str] = None, create_tables: bool = True) -> FastAPI:
    logger = setup_logging()

    engine = build_engine(database_url or settings.database_url)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if create_tables:
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        logger.info("Academic control backend started")
        yield
        await engine.dispose()

    app = FastAPI(title="Academic Control Backend", lifespan=lifespan)
    app.state.engine = engine
    app.state.sessionmaker = build_sessionmaker(engine)

    # CORS: allow frontend to call this API
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(ServiceError)
    async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.message, "code": exc.code})

    # Routers
    app.include_router(auth_router)
    app.include_router(profiles_router)
    app.include_router(classes_router)
    app.include_router(enrollments_router)
    app.include_router(grades_router)
    app.include_router(attendance_router)
    app.include_router(reports_router)

    return app


app = create_app()
