import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sportsee_coach.router import router as coach_router

from database import engine
import models

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

# Create the database tables (if missing)
models.Base.metadata.create_all(bind=engine)

# Start the FastAPI application
app = FastAPI(
    title="SportSee Coach Service",
    description="AI coach for SportSee: answers grounded in the user's activity data, with hallucination checks.",
    version="1.0.0"
)

# CORS settings (frontend access)
# In production, restrict allow_origins to the frontend domain.
origins = [
    "http://localhost",
    "http://localhost:3000",  # Next.js default port
    "http://localhost:8000",
    "http://localhost:8081",
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routers
app.include_router(coach_router)

@app.get("/")
async def health_check():
    """
    Service health check
    """
    return {
        "status": "healthy",
        "service": "SportSee Coach Service",
        "version": "1.0.0"
    }

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
