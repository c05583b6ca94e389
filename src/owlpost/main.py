"""Owlpost conversational backend - Main entry point."""
from fastapi import FastAPI
from owlpost.api.routes import router
from owlpost.core.logging import configure_logging, logger
from owlpost.core.config import settings

configure_logging(settings.logging.level, settings.logging.format)

# Initialize FastAPI app
app = FastAPI(
    title="Owlpost: Conversational Payments Assistant",
    description="Intent resolution, action dispatch and response rewriting for chat front-ends",
    version="0.1.0"
)

# Include routes
app.include_router(router)


@app.on_event("startup")
async def startup_event():
    """Initialize services on startup."""
    logger.info("=" * 60)
    logger.info(f"{settings.assistant.name} starting up")
    logger.info(f"LLM endpoint: {settings.llm.base_url}")
    logger.info(f"LLM model: {settings.llm.model_name}")
    logger.info(f"Session backend: {settings.session.backend} (max {settings.max_turns} turns)")

    try:
        from owlpost.services.chat import get_chat_orchestrator
        get_chat_orchestrator()
        logger.info("Chat pipeline ready")
    except Exception as e:
        logger.error(f"Failed to build chat pipeline: {e}")

    logger.info("=" * 60)


@app.on_event("shutdown")
async def shutdown_event():
    """Cleanup on shutdown."""
    logger.info(f"{settings.assistant.name} shutting down")


if __name__ == "__main__":
    import uvicorn
    import os
    # Only enable reload in development
    reload = os.getenv("OWLPOST_DEV_MODE", "false").lower() == "true"
    uvicorn.run(
        "owlpost.main:app",
        host=os.getenv("OWLPOST_HOST", "0.0.0.0"),
        port=int(os.getenv("OWLPOST_PORT", "8080")),
        reload=reload,
        log_level="info"
    )
