"""Errores del servicio de autenticación.

Cada error lleva el código HTTP y el mensaje público que el transporte
devuelve al cliente. El detalle interno solo va al log.
"""


class AuthServiceError(Exception):
    """Base de todos los errores del servicio."""

    status_code: int = 500
    message: str = "Internal server error."

    def __init__(self, message: str | None = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


class ValidationError(AuthServiceError):
    """Faltan campos obligatorios en la petición."""

    status_code = 400
    message = "Missing required fields."


class InvalidCredentialsError(AuthServiceError):
    # Mismo error para email inexistente y contraseña incorrecta
    status_code = 401
    message = "Invalid email or password."


class DuplicateEmailError(AuthServiceError):
    status_code = 409
    message = "Email already registered."


class InternalError(AuthServiceError):
    """Fallo inesperado. Se responde 500 sin detalles internos."""

    status_code = 500
    message = "Internal server error."


class StorageError(InternalError):
    pass


class StorageReadError(StorageError):
    """El archivo de usuarios no se pudo leer o no es válido (modo estricto)."""


class StorageWriteError(StorageError):
    """El archivo de usuarios no se pudo escribir (permisos, disco lleno...)."""
