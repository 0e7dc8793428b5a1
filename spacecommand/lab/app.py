"""FastAPI application for the SpaceCommand combat lab."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .. import __version__
from .api_routes import router

app = FastAPI(
    title="SpaceCommand Combat Lab",
    description="Resolve battles and measure balance with the combat engine",
    version=__version__,
)

# Add CORS middleware for development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router, prefix="/api")


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "ok", "service": "spacecommand-combat-lab"}
