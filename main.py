# main.py
import logging
import os

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import CORS_ORIGINS, LOG_LEVEL
from database import check_connection
from routers import payment_settings_router, payments_router

# Logging
logging.basicConfig(
     format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
     level=LOG_LEVEL,
)
logger = logging.getLogger(__name__)

# App instance
app = FastAPI(title="Paid content payments")

# CORS
app.add_middleware(
     CORSMiddleware,
     allow_origins=CORS_ORIGINS,
     allow_credentials=True,
     allow_methods=["*"],
     allow_headers=["*"],
)

app.include_router(payments_router)
app.include_router(payment_settings_router)


@app.get("/health")
def health():
     if not check_connection():
          return JSONResponse(status_code=503, content={"status": "unavailable", "database": False})
     return {"status": "ok", "database": True}


# 404 Fallback Middleware
@app.middleware("http")
async def not_found_middleware(request: Request, call_next):
     try:
          response = await call_next(request)
     except Exception:
          logger.exception("Unhandled error on %s %s", request.method, request.url.path)
          return JSONResponse(status_code=500, content={"error": "Internal server error"})
     if response.status_code == 404 and not request.url.path.startswith("/api/"):
          return JSONResponse(status_code=404, content={"error": "Route not found"})
     return response


if __name__ == "__main__":
     port = int(os.getenv("PORT", 10000))
     uvicorn.run("main:app", host="0.0.0.0", port=port, reload=True)
