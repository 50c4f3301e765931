import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from .core.settings import get_settings
from .routers import admin, categories, ingest
from .services.ai.registry import build_registry

logger = logging.getLogger(__name__)

app = FastAPI(
    title="FinAssist API",
    description="Turns text, receipt photos and voice notes into categorized transactions",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(ingest.router)
app.include_router(categories.router)
app.include_router(admin.router)


@app.on_event("startup")
def build_backends():
    settings = get_settings()
    logging.basicConfig(level=settings.log_level.upper())

    # Without a backend nothing can be served, so this is allowed to abort startup
    app.state.registry = build_registry(settings)
    logger.info(
        f"Extraction backends ready: {app.state.registry.list_names()} "
        f"(active: {app.state.registry.active_name})"
    )


@app.get("/health")
async def health_check():
    return {"status": "healthy", "message": "FinAssist API is running"}

@app.get("/")
async def root():
    return {"message": "Welcome to FinAssist API"}

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("finassist.main:app", host="0.0.0.0", port=8000, reload=True)
