"""
Main FastAPI application entry point.
"""
import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from cashew_qc.api import audits, evaluations
from cashew_qc.config.settings import settings

# Configure logging
logging.basicConfig(
    level=settings.log_level.upper(),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

app = FastAPI(
    title="Cashew QC Inspection Engine",
    description="Weight derivation, outturn and validation alerts for raw cashew inspections",
    version="1.0.0"
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://localhost:5173"],  # Entry form dev servers
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(evaluations.router, prefix="/api", tags=["evaluations"])
app.include_router(audits.router, prefix="/api/audits", tags=["audits"])


@app.get("/")
async def root():
    return {"message": "Cashew QC Inspection Engine API"}


@app.get("/health")
async def health():
    return {"status": "healthy"}
