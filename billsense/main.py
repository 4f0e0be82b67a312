import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from billsense.config import settings

logging.basicConfig(level=settings.LOG_LEVEL)

app = FastAPI(
    title="BillSense API",
    description="Bill type, amount and due-date extraction from OCR text",
    version="0.1.0"
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.get("/")
async def root():
    return {
        "message": "BillSense API",
        "version": "0.1.0",
        "status": "running"
    }

@app.get("/health")
async def health_check():
    return {"status": "healthy"}

# Import routers
from billsense.routers import analyze

# Include routers
app.include_router(analyze.router)
