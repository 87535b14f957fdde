"""FastAPI web application for WorkOps.

Public routes: Google sign-in and email/password login. Everything else under
/api/auth requires a Firebase ID token (`Authorization: Bearer <token>`),
checked by `get_current_user`.
"""

import logging
import os
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from dotenv import load_dotenv

from workops.api.auth_models import (
    AuthResponse,
    CurrentUserResponse,
    GoogleAuthRequest,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    SetPasswordRequest,
    UserResponse,
    VerifyPasswordRequest,
)
from workops.auth.dependencies import get_auth_service, get_current_user
from workops.auth.errors import AuthServiceError
from workops.auth.firebase import FirebaseIdentityProvider
from workops.auth.service import AuthService
from workops.database.database import init_db
from workops.models.user import User
from workops.utils.logging import setup_logging

load_dotenv()

logger = logging.getLogger(__name__)

APP_VERSION = "1.0.0"
DEBUG = os.getenv("DEBUG", "False").lower() == "true"
CORS_ALLOW_ORIGINS = [o.strip() for o in os.getenv("CORS_ALLOW_ORIGINS", "*").split(",") if o.strip()]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager.

    The identity provider is created here, once, before the first request.
    Startup aborts if its credentials are missing.
    """
    setup_logging()
    logger.info("Starting WorkOps backend...")

    init_db()
    logger.info("Database initialized")

    if getattr(app.state, "identity_provider", None) is None:
        app.state.identity_provider = FirebaseIdentityProvider.from_environment()
        logger.info("Firebase identity provider initialized")

    yield

    logger.info("Shutting down WorkOps backend...")


# Initialize FastAPI app
app = FastAPI(
    title="WorkOps Backend API",
    description="Google sign-in, email/password login and bearer-token authorization",
    version=APP_VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ALLOW_ORIGINS,
    allow_credentials=False,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)


@app.exception_handler(AuthServiceError)
async def auth_service_error_handler(request: Request, exc: AuthServiceError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": exc.message, "code": exc.code},
    )


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={"success": False, "message": "Invalid request body.", "code": "VALIDATION_ERROR"},
    )


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404:
        return JSONResponse(
            status_code=404,
            content={"success": False, "message": "Route not found", "path": request.url.path},
        )
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error(f"Server error: {request.method} {request.url.path} - {type(exc).__name__}", exc_info=exc)
    content = {"success": False, "message": "Internal server error"}
    if DEBUG:
        content["error"] = str(exc)
    return JSONResponse(status_code=500, content=content)


@app.get("/")
def root():
    """Health check endpoint."""
    return {
        "success": True,
        "message": "WorkOps Backend API is running",
        "version": APP_VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


# Public routes


@app.post("/api/auth/google", response_model=AuthResponse)
def google_auth(body: GoogleAuthRequest, auth_service: AuthService = Depends(get_auth_service)):
    """Sign in (or up) with a Firebase ID token from Google sign-in."""
    user = auth_service.sign_in_with_google(body.id_token)
    return AuthResponse(message="Authentication successful.", user=UserResponse.from_user(user))


@app.post("/api/auth/login", response_model=LoginResponse)
def email_password_login(body: LoginRequest, auth_service: AuthService = Depends(get_auth_service)):
    """Log in with email/password and receive a Firebase custom token."""
    user, custom_token = auth_service.login_with_password(body.email, body.password)
    return LoginResponse(
        message="Login successful",
        custom_token=custom_token,
        user=UserResponse.from_user(user),
    )


# Protected routes


@app.get("/api/auth/current-user", response_model=CurrentUserResponse)
def current_user(user: User = Depends(get_current_user)):
    """Get the logged-in user's profile."""
    return CurrentUserResponse(user=UserResponse.from_user(user))


@app.post("/api/auth/logout", response_model=MessageResponse)
def logout(user: User = Depends(get_current_user)):
    """Log out.

    Tokens are issued and expired by Firebase; there is no server-side session
    to revoke, so this only acknowledges the request.
    """
    logger.info(f"User logged out: {user.email}")
    return MessageResponse(message="Logged out successfully.")


@app.post("/api/auth/set-password", response_model=MessageResponse)
def set_password(
    body: SetPasswordRequest,
    user: User = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service),
):
    """Set or change the password used for email/password login."""
    auth_service.set_password(user, body.password, body.confirm_password, body.current_password)
    return MessageResponse(message="Password set successfully")


@app.post("/api/auth/verify-password", response_model=MessageResponse)
def verify_password(
    body: VerifyPasswordRequest,
    user: User = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service),
):
    """Check the current password before a sensitive action."""
    auth_service.verify_current_password(user, body.current_password)
    return MessageResponse(message="Password verified successfully")
