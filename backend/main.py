from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from colorama import Fore
import asyncio
import os
import socketio
import logging
from dotenv import load_dotenv

load_dotenv()

# --- Centralized Logging ---
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s"
)
logger = logging.getLogger("domainguard")

from core.database import init_db, db_writer_worker, drain_log_queue
from .routers import analyze, api
from .services.analysis_service import analysis_service
from .services.broadcast import sio

# --- Global Exception Handler ---
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Global Exception: {str(exc)}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"status": "error", "message": "An internal server error occurred.", "details": str(exc)}
    )

@asynccontextmanager
async def lifespan(app: FastAPI):
    # STARTUP
    loop = asyncio.get_running_loop()
    await loop.run_in_executor(None, init_db)
    writer = asyncio.create_task(db_writer_worker())

    tables = analysis_service.engine.rules
    print(f"{Fore.GREEN}[+] DomainGuard engine online (rules v{tables.version}, "
          f"cache {analysis_service.cache.capacity} entries).")
    yield
    # SHUTDOWN
    print(f"\n{Fore.YELLOW}[!] Server stopping...")
    writer.cancel()
    await drain_log_queue()

api_app = FastAPI(
    title="DomainGuard | Domain Risk Engine",
    lifespan=lifespan,
    exception_handlers={Exception: global_exception_handler}
)

# --- CORS Hardening ---
api_app.add_middleware(
    CORSMiddleware,
    allow_origins=os.getenv("CORS_ORIGINS", "*").split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@api_app.get("/api/ping")
async def ping():
    return {"status": "pong"}

# Routers
api_app.include_router(analyze.router)
api_app.include_router(api.router, prefix="/api")

# Wrap with Socket.IO
app = socketio.ASGIApp(sio, api_app, socketio_path='socket.io')
