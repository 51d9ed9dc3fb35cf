from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from lessonforge.config import settings
from lessonforge.database import engine, Base
from lessonforge.init_admin import create_admin
from lessonforge.api import auth, generation as generation_api, lessons as lessons_api, websocket as websocket_api
import lessonforge.models  # noqa: F401  registers tables on Base.metadata
import logging

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)

def startup_tasks():
    Base.metadata.create_all(bind=engine)
    create_admin()

app = FastAPI(
    title="LessonForge API",
    description="AI-generated interactive lessons, validated and rendered in a sandbox",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth.router)
app.include_router(generation_api.router)
app.include_router(lessons_api.router)
app.include_router(websocket_api.router)

@app.on_event("startup")
async def startup_event():
    startup_tasks()
    logger.info("[STARTUP] Tables ready")

@app.get("/")
async def root():
    return {
        "message": "LessonForge lesson generation API",
        "features": [
            "Topic analysis and lesson generation",
            "Static validation with automatic repair",
            "Sandboxed server-side lesson rendering"
        ]
    }

@app.get("/health")
async def health_check():
    return {"status": "healthy"}

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
