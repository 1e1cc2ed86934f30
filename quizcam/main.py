"""
FastAPI main application
"""
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from quizcam.api import routes
from quizcam.config import get_settings
from quizcam.utils.logger import get_logger, setup_logging

settings = get_settings()
setup_logging(
    environment=settings.environment,
    log_dir=settings.log_dir,
    app_name="quizcam",
    level=settings.log_level or None,
)
logger = get_logger(__name__)

# @traceable reads LANGSMITH_* while LangChain components read LANGCHAIN_*
if settings.langsmith_tracing and settings.langsmith_api_key:
    os.environ["LANGCHAIN_TRACING_V2"] = "true"
    os.environ["LANGCHAIN_API_KEY"] = settings.langsmith_api_key
    os.environ["LANGCHAIN_PROJECT"] = settings.langsmith_project
    os.environ["LANGSMITH_API_KEY"] = settings.langsmith_api_key
    os.environ["LANGSMITH_TRACING"] = "true"
    os.environ["LANGSMITH_PROJECT"] = settings.langsmith_project

app = FastAPI(
    title="QuizCam",
    description="Photo-to-quiz generation and quiz session API",
    version="1.0.0",
    debug=settings.debug,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(routes.router, prefix="/api")
logger.info(
    f"QuizCam API configured: model={settings.generation_model}, "
    f"native_languages={settings.native_language_codes}, auto_advance={settings.auto_advance_delay}s"
)


@app.get("/")
async def root():
    return {
        "message": "QuizCam API",
        "status": "running",
        "version": "1.0.0",
    }


@app.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "environment": settings.environment,
        "generation_model": settings.generation_model,
        "native_language_codes": settings.native_language_codes,
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "quizcam.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
    )
