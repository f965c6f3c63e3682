import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from core.config import settings
from core.database import create_db_and_tables
from core.errors import register_error_handlers
from routes.auth import router as auth_router
from routes.billing import router as billing_router
from routes.invitation import router as invitation_router
from routes.members import router as members_router
from routes.organization import router as organization_router
from routes.projects import router as projects_router

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


# =========================================
# 🏁 Lifespan (DB initialization)
# =========================================
@asynccontextmanager
async def lifespan(app: FastAPI):
    create_db_and_tables()
    logger.info("Database tables created on startup.")
    yield
    logger.info("Application shutting down.")


# =========================================
#  ✅ FastAPI App
# =========================================
app = FastAPI(lifespan=lifespan, title="SaaS RBAC Backend")

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.FRONTEND_URL],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)


# =========================================
# 📦 Routers
# =========================================
app.include_router(auth_router)
app.include_router(organization_router)
app.include_router(members_router)
app.include_router(projects_router)
app.include_router(invitation_router)
app.include_router(billing_router)


# =========================================
# 🩺 Health Check
# =========================================
@app.get("/health")
def health_check():
    return {"status": "ok", "message": "Backend is running"}


@app.get("/")
def read_root():
    return {"message": "Welcome to SaaS RBAC Backend!"}
