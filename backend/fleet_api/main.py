import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from fleet_api.api import (
    me, users, user_roles, vehicle_brands, vehicle_models, vehicles, vehicle_responsibles,
    vehicle_acl, reservations, maintenance, quarterly_controls, quarterly_control_items, risks, metrics,
)
from fleet_api.core.config import settings
from fleet_api.core.database import check_database_health, init_db
from fleet_api.core.errors import register_exception_handlers
from fleet_api.core.rate_limit import RateLimitMiddleware

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Fleet Management API",
    description="Vehicles, maintenance schedules, quarterly controls, reservations and access control for a fleet",
    version="1.0.0",
)

# Rate limiting middleware
app.add_middleware(
    RateLimitMiddleware,
    requests_per_minute=settings.RATE_LIMIT_PER_MINUTE,
    requests_per_hour=settings.RATE_LIMIT_PER_HOUR,
    enabled=settings.RATE_LIMIT_ENABLED,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# Include routers
app.include_router(me.router, prefix="/me", tags=["Me"])
app.include_router(users.router, prefix="/users", tags=["Users"])
app.include_router(user_roles.router, prefix="/user-roles", tags=["User Roles"])
app.include_router(vehicle_brands.router, prefix="/vehicle-brands", tags=["Vehicle Brands"])
app.include_router(vehicle_models.router, prefix="/vehicle-models", tags=["Vehicle Models"])
app.include_router(vehicles.router, prefix="/vehicles", tags=["Vehicles"])
app.include_router(vehicle_responsibles.router, prefix="/vehicle-responsibles", tags=["Vehicle Responsibles"])
app.include_router(vehicle_acl.router, prefix="/vehicle-acl", tags=["Vehicle ACL"])
app.include_router(reservations.router, prefix="/reservations", tags=["Reservations"])
app.include_router(maintenance.router, prefix="/maintenance", tags=["Maintenance"])
app.include_router(quarterly_controls.router, prefix="/quarterly-controls", tags=["Quarterly Controls"])
app.include_router(quarterly_control_items.router, prefix="/quarterly-control-items", tags=["Quarterly Controls"])
app.include_router(risks.router, prefix="/risks", tags=["Risks"])
app.include_router(metrics.router, prefix="/metrics", tags=["Metrics"])


@app.on_event("startup")
def on_startup():
    init_db()
    logger.info("Fleet Management API started")


@app.get("/")
async def root():
    return {"message": "Fleet Management API", "version": "1.0.0", "docs": "/docs"}


@app.get("/health")
async def health_check():
    database = check_database_health()
    return {"status": database["status"], "database": database}
