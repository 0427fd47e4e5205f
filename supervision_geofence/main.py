"""FastAPI application with supervision geofence endpoints."""

import logging

from fastapi import FastAPI, HTTPException, status

from supervision_geofence.metrics import router as metrics_router
from supervision_geofence.settings import settings
from supervision_geofence.schemas import LoginRequest, LoginResponse
from supervision_geofence.location_logs.routes import router as location_logs_router
from supervision_geofence.auth import authenticate_user, create_access_token

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)
log = logging.getLogger("supervision-geofence")

app = FastAPI(
    title="Supervision Geofence",
    description="Supervisor visit location validation and override audit",
    version="1.0.0",
)

# Observability
app.include_router(metrics_router)  # exposes GET /metrics

# Functional routers
app.include_router(location_logs_router)


# --------------------
# Auth
# --------------------
@app.post("/auth/login", response_model=LoginResponse)
async def login(request: LoginRequest):
    """Authenticate the admin account and return a JWT carrying its roles."""
    if not authenticate_user(request.username, request.password):
        log.warning("Failed login for %s", request.username)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    access_token = create_access_token(
        data={
            "sub": request.username,
            "uid": settings.admin_id,
            "roles": sorted(settings.admin_role_set),
        }
    )
    return LoginResponse(access_token=access_token, token_type="bearer")


# --------------------
# Root
# --------------------
@app.get("/")
async def root():
    return {"message": "Supervision geofence API", "version": "1.0.0"}


if __name__ == "__main__":
    import uvicorn

    from supervision_geofence.db import init_db

    init_db()
    uvicorn.run(app, host="0.0.0.0", port=8000)
