import logging

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv

# ----------------------------------------------------
# 🔐 LOAD .ENV
# ----------------------------------------------------
load_dotenv(override=True)

from app.config import settings
from app.db import engine
from app.errors import register_exception_handlers
from models import Base

# Routers
from routers import auth_admin, admin_partners, admin_partner_requests
from routers import admin_leads, admin_agreements
from routers import partner_requests, partner_portal, partner_onboarding, partner_leads
from routers import notifications
from routers import stripe_webhook

# ----------------------------------------------------
# 📝 LOGGING
# ----------------------------------------------------
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

# ----------------------------------------------------
# 🚀 FASTAPI APP
# ----------------------------------------------------
app = FastAPI(
    title="Partner Portal Backend",
    version="1.0.0",
)

register_exception_handlers(app)

# ----------------------------------------------------
# 🌐 CORS CONFIG
# ----------------------------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ----------------------------------------------------
# 🟢 GLOBAL OPTIONS HANDLER
# ----------------------------------------------------
@app.options("/{path:path}")
async def options_handler(path: str, request: Request):
    return Response(status_code=204)

# ----------------------------------------------------
# 🗄️ DB INIT (SOLO DEV)
# ----------------------------------------------------
if settings.env == "dev" and settings.db_auto_create:
    Base.metadata.create_all(bind=engine)

# ----------------------------------------------------
# 🔌 ROUTERS
# ----------------------------------------------------
app.include_router(partner_requests.router)
app.include_router(partner_portal.router)
app.include_router(partner_onboarding.router)
app.include_router(partner_leads.router)
app.include_router(notifications.router)

app.include_router(auth_admin.router)
app.include_router(admin_partner_requests.router)
app.include_router(admin_partners.router)
app.include_router(admin_leads.router)
app.include_router(admin_agreements.router)

app.include_router(stripe_webhook.router)

# ----------------------------------------------------
# 🏠 BASE
# ----------------------------------------------------
@app.get("/")
def root():
    return {"message": "Partner Portal backend attivo e pronto!"}

@app.get("/health")
def health():
    return {"ok": True}
