"""Modelos Pydantic (schemas) para los cuerpos de entrada/salida del Servicio de Autenticación."""

from typing import Optional

from pydantic import BaseModel

# --- Schemas de Petición ---
# Los campos son opcionales a propósito: la validación de campos vacíos
# la hace el servicio para responder 400 con su propio mensaje.

class SignupRequest(BaseModel):
    """Schema para los datos de registro de un nuevo usuario."""
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class LoginRequest(BaseModel):
    """Schema para las credenciales de inicio de sesión."""
    email: Optional[str] = None
    password: Optional[str] = None


# --- Schemas de Respuesta ---

class MessageResponse(BaseModel):
    message: str


class LoginResponse(MessageResponse):
    """Datos devueltos tras un login exitoso (nunca incluye el hash)."""
    name: str
    email: str
