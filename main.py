import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from app.api import admin, appointments, auth, catalog, payments, users, video_calls
from app.core.env import is_local_env
from app.core.envelope import UTF8JSONResponse, install_envelope_handlers
from database import Base, engine
import models  # noqa: F401
from seed import seed_admin_user

logger = logging.getLogger(__name__)

default_origins = [
    "http://localhost:3000",
    "http://localhost:5173",
]
cors_origins = os.getenv("CORS_ORIGINS")
env_origins = [origin.strip() for origin in cors_origins.split(",") if origin.strip()] if cors_origins else []
origins = list({*default_origins, *env_origins})

app = FastAPI(title="Astro Consult API", version="0.1.0", default_response_class=UTF8JSONResponse)
install_envelope_handlers(app)


def _should_create_all() -> bool:
    enable_flag = os.getenv("ENABLE_CREATE_ALL", "").lower() in {"1", "true", "yes"}
    if engine.url.get_backend_name() == "sqlite":
        return True
    return is_local_env() or enable_flag


@app.on_event("startup")
def on_startup() -> None:
    if _should_create_all():
        try:
            Base.metadata.create_all(bind=engine)
        except SQLAlchemyError as exc:
            logger.warning("Base.metadata.create_all failed; continuing without fatal error: %s", exc)
    else:
        logger.info(
            "Skipping Base.metadata.create_all on %s (APP_ENV=%s); run migrations or create tables separately.",
            engine.url.get_backend_name(),
            os.getenv("APP_ENV"),
        )
    seed_admin_user()


app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth.router, prefix="/api", tags=["auth"])
app.include_router(catalog.router, prefix="/api", tags=["catalog"])
app.include_router(appointments.router, prefix="/api", tags=["appointments"])
app.include_router(payments.router, prefix="/api", tags=["payments"])
app.include_router(users.router, prefix="/api", tags=["user"])
app.include_router(admin.router, prefix="/api", tags=["admin"])
app.include_router(video_calls.router, prefix="/api", tags=["video-call"])


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}
