import logging

from fastapi import FastAPI

from app.api import coaching, cron

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

logger = logging.getLogger(__name__)

app = FastAPI(title="LINE Coach", version="0.1.0")

# Include routers
app.include_router(cron.router)
app.include_router(coaching.router)


@app.get("/health")
async def health_check():
    return {"status": "healthy"}
