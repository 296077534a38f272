"""Progress Service API - FastAPI with DynamoDB, streaks and XP"""
import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from progress_service.config import get_settings
from progress_service.dependencies import get_db
from progress_service.dynamo import STORAGE_ERRORS
from progress_service.routers import analytics, codeforces, leaderboard, progress, solved_problems, streaks

settings = get_settings()
logging.basicConfig(level=settings.LOG_LEVEL, format="%(asctime)s - %(levelname)s - %(message)s")
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Progress Service API",
    description="Solve tracking, streaks, XP and leaderboards for CodeBattle",
    version=settings.VERSION,
    docs_url="/api/docs",
    redoc_url="/api/redoc"
)

app.include_router(progress.router, prefix="/api/v1")
app.include_router(solved_problems.router, prefix="/api/v1")
app.include_router(streaks.router, prefix="/api/v1")
app.include_router(analytics.router, prefix="/api/v1")
app.include_router(leaderboard.router, prefix="/api/v1")
app.include_router(codeforces.router, prefix="/api/v1")

app.add_middleware(CORSMiddleware, allow_origins=settings.CORS_ORIGINS, allow_credentials=True, allow_methods=["*"], allow_headers=["*"])


@app.get("/")
async def root():
    return {"service": "progress-service", "status": "running", "version": settings.VERSION}


@app.get("/health")
async def health():
    try:
        db = get_db()
        db.client.describe_table(TableName=settings.DYNAMODB_SOLVED_PROBLEMS_TABLE)
        return {"status": "healthy", "dynamodb": "connected"}
    except STORAGE_ERRORS as e:
        logger.warning(f"Health check DynamoDB connection failed: {str(e)}")
        # Still healthy for load balancer checks; DynamoDB may come back
        return {"status": "healthy", "dynamodb": "unavailable", "warning": str(e)[:100]}
