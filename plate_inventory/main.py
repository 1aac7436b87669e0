# plate_inventory/main.py

import time
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from dotenv import load_dotenv
from .database import engine, Base
from .exceptions import APIException
from .capture import router as capture_router
from .inventory import router as inventory_router
from .reports import router as reports_router

load_dotenv()

Base.metadata.create_all(bind=engine)

app = FastAPI(
    title="Plate Inventory API",
    description="Warehouse license plate inventory: manifest upload, plate capture and reconciliation, PDF reports",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(APIException)
async def api_exception_handler(request: Request, exc: APIException):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


app.include_router(inventory_router)
app.include_router(capture_router)
app.include_router(reports_router)


@app.get("/")
async def root():
    return {
        "message": "Plate Inventory API is running",
        "status": "healthy",
        "version": "1.0.0"
    }

@app.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "timestamp": time.time(),
        "service": "plate-inventory-api",
        "version": "1.0.0"
    }
