# priorart/main.py
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from priorart.core.config import settings
from priorart.core.logging_config import setup_logging
from priorart.db.base import Base
from priorart.db.session import engine
from priorart.api.v1.endpoints import evaluations, health, leaderboards, submissions
from priorart.services.errors import (
    ChallengeError,
    NotFoundError,
    PermissionDeniedError,
)

app = FastAPI(title=settings.PROJECT_NAME)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
def on_startup():
    setup_logging()
    Base.metadata.create_all(bind=engine)


@app.exception_handler(ChallengeError)
def challenge_error_handler(request: Request, exc: ChallengeError):
    if isinstance(exc, NotFoundError):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(exc, PermissionDeniedError):
        code = status.HTTP_403_FORBIDDEN
    else:
        # closed windows, result limits, empty values
        code = status.HTTP_400_BAD_REQUEST
    return JSONResponse(status_code=code, content={"detail": str(exc)})


app.include_router(health.router, prefix="/api/v1")
app.include_router(leaderboards.router, prefix="/api/v1")
app.include_router(evaluations.router, prefix="/api/v1")
app.include_router(submissions.router, prefix="/api/v1")
