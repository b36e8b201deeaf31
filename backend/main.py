# backend/main.py
import logging
import uuid

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import settings
from database import init_db
from utils.state_observer import ChangeFeed

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("workshop")

# Router imports
from routes.auth import router as auth_router
from routes.admin import router as admin_router
from routes.logs import router as logs_router
from routes.functions import router as functions_router
from routes.bikes import router as bikes_router
from routes.repairs import router as repairs_router
from routes.pricelist import router as pricelist_router
from routes.call_statuses import router as call_statuses_router
from routes.availability import router as availability_router
from routes.announcements import router as announcements_router
from routes.tv import router as tv_router
from routes.status import router as status_router
from routes.inventory import router as inventory_router
from routes.tasks import router as tasks_router
from routes.warranty import router as warranty_router

init_db()

app = FastAPI(title="Bike Workshop API", version="1.0.0")

# Mutating routes publish here; the TV stream listens
app.state.change_feed = ChangeFeed()

origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
]
if settings.FRONTEND_URL and settings.FRONTEND_URL not in origins:
    origins.append(settings.FRONTEND_URL)

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Unhandled errors: log the traceback under a correlation id, return only the id
@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    request_id = str(uuid.uuid4())
    logger.exception("Unhandled error %s on %s %s", request_id, request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": "Internal server error", "requestId": request_id})


app.include_router(auth_router)
app.include_router(admin_router)
app.include_router(logs_router)
app.include_router(functions_router)
app.include_router(bikes_router)
app.include_router(repairs_router)
app.include_router(pricelist_router)
app.include_router(call_statuses_router)
app.include_router(availability_router)
app.include_router(announcements_router)
app.include_router(tv_router)
app.include_router(status_router)
app.include_router(inventory_router)
app.include_router(tasks_router)
app.include_router(warranty_router)

@app.get("/")
def read_root():
    return {"message": "Bike Workshop API is running"}
