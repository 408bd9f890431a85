# obratrack/main.py

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import os
import logging

# Роутеры
from obratrack.api.client import router as client_router
from obratrack.api.comment import router as comment_router
from obratrack.api.project import router as project_router
from obratrack.api.stage import router as stage_router
from obratrack.api.stage_template import router as stage_template_router
from obratrack.api.tag import router as tag_router
from obratrack.api.user import router as user_router

from obratrack.core.settings import settings
from obratrack.core.exceptions import (
    ConflictError,
    NotFoundError,
    ValidationError,
)
from obratrack.database import init_db

# Логирование
logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger("uvicorn.error")

app = FastAPI(
    title="ObraTrack API",
    version="1.0.0",
    description="Construction project tracking: projects, ordered stages, templates, tags and comments",
)

# Middlewares
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(project_router)
app.include_router(stage_router)
app.include_router(comment_router)
app.include_router(user_router)
app.include_router(client_router)
app.include_router(tag_router)
app.include_router(stage_template_router)

# Health check & root
@app.get("/", tags=["Health"])
def root():
    return {"status": "ObraTrack API is running!"}

@app.get("/health", tags=["Health"])
def health():
    return {"ok": True}

@app.on_event("startup")
async def startup_event():
    logger.info(f"Starting ObraTrack API ({settings.ENV})")
    if settings.AUTO_CREATE_TABLES:
        init_db()

@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Stopping ObraTrack API")

# Доменные исключения, не перехваченные в роутерах

@app.exception_handler(NotFoundError)
async def not_found_exception_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})

@app.exception_handler(ConflictError)
async def conflict_exception_handler(request: Request, exc: ConflictError):
    return JSONResponse(status_code=409, content={"detail": str(exc)})

@app.exception_handler(ValidationError)
async def validation_exception_handler(request: Request, exc: ValidationError):
    return JSONResponse(status_code=400, content={"detail": str(exc)})

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "obratrack.main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", 8000)),
        reload=settings.DEBUG,
    )
