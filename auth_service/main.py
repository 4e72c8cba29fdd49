import os
import logging
import time
from pathlib import Path

import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI, Depends, status, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse, Response
from fastapi.staticfiles import StaticFiles
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST

# Importaciones locales
from auth_service import schemas
from auth_service.exceptions import AuthServiceError, InternalError
from auth_service.service import (
    AuthService,
    get_auth_service,
    LOGIN_FIELDS_REQUIRED,
    SIGNUP_FIELDS_REQUIRED,
)

load_dotenv()

# Configura logger
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

# --- Configuración del proceso ---
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", 5000))
STATIC_DIR = Path(os.getenv("STATIC_DIR", "static"))
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

# Inicializa FastAPI
app = FastAPI(
    title="Auth Service",
    description="Handles user signup and login against a JSON user store.",
    version="1.0.0"
)

# --- Configuración de CORS ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials="*" not in CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- Métricas Prometheus ---
REQUEST_COUNT = Counter(
    "auth_requests_total",
    "Total requests processed by Auth Service",
    ["method", "endpoint", "status_code"]
)
REQUEST_LATENCY = Histogram(
    "auth_request_latency_seconds",
    "Request latency in seconds for Auth Service",
    ["endpoint"]
)

# --- Middleware para Métricas ---
@app.middleware("http")
async def metrics_middleware(request: Request, call_next):
    start_time = time.time()
    response = None
    status_code = 500 # Default a 500

    try:
        response = await call_next(request)
        status_code = response.status_code
    except Exception as exc:
        logger.error(f"Unhandled exception during request processing: {exc}", exc_info=True)
        response = JSONResponse({"message": InternalError.message}, status_code=500)
    finally:
        latency = time.time() - start_time
        endpoint = request.url.path

        final_status_code = getattr(response, 'status_code', status_code)

        REQUEST_LATENCY.labels(endpoint=endpoint).observe(latency)
        REQUEST_COUNT.labels(
            method=request.method,
            endpoint=endpoint,
            status_code=final_status_code
        ).inc()

    return response

# --- Manejo de Errores ---

@app.exception_handler(AuthServiceError)
async def auth_service_exception_handler(request: Request, error: AuthServiceError):
    """Traduce un error del servicio a la respuesta JSON pública."""
    if error.status_code >= 500:
        # El detalle interno (rutas, causas) solo va al log
        return JSONResponse({"message": InternalError.message}, status_code=error.status_code)
    return JSONResponse({"message": error.message}, status_code=error.status_code)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Cuerpos que no son JSON o con campos que no son texto: 400 en lugar de 422."""
    logger.warning(f"Malformed request body on {request.url.path}: {exc.errors()}")
    message = SIGNUP_FIELDS_REQUIRED if request.url.path.endswith("/signup") else LOGIN_FIELDS_REQUIRED
    return JSONResponse({"message": message}, status_code=status.HTTP_400_BAD_REQUEST)

# --- Endpoints de Salud y Métricas ---
@app.get("/metrics", tags=["Monitoring"])
def metrics():
    """Exposes application metrics for Prometheus."""
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)

@app.get("/health", tags=["Monitoring"])
def health_check():
    """Performs a basic health check of the service."""
    return {"status": "ok", "service": "auth_service"}

# --- Endpoints de API ---
# Funciones síncronas: FastAPI las ejecuta en su pool de hilos, así el
# hash bcrypt no bloquea la aceptación de otras peticiones.

@app.post(
    "/api/signup",
    response_model=schemas.MessageResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["Authentication"],
)
def signup(body: schemas.SignupRequest, service: AuthService = Depends(get_auth_service)):
    """
    Registers a new user with name, email and password.
    The password is stored only as a bcrypt hash.
    """
    service.register(body.name, body.email, body.password)
    return {"message": "Signup successful."}


@app.post("/api/login", response_model=schemas.LoginResponse, tags=["Authentication"])
def login(body: schemas.LoginRequest, service: AuthService = Depends(get_auth_service)):
    """
    Authenticates a user by email (case-insensitive) and password.
    Returns the stored name and email; never the hash.
    """
    user = service.authenticate(body.email, body.password)
    return {"message": "Login successful.", "name": user.name, "email": user.email}

# --- Frontend estático ---

@app.get("/", include_in_schema=False)
def index():
    """Serves the login page."""
    login_page = STATIC_DIR / "login.html"
    if not login_page.is_file():
        return JSONResponse({"message": "Not found."}, status_code=status.HTTP_404_NOT_FOUND)
    return FileResponse(login_page)

# Se monta al final para no tapar las rutas /api
if STATIC_DIR.is_dir():
    app.mount("/", StaticFiles(directory=str(STATIC_DIR), html=True), name="static")


def run():
    logger.info(f"Server running on http://localhost:{PORT}")
    uvicorn.run(app, host=HOST, port=PORT)


if __name__ == "__main__":
    run()
