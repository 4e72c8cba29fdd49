"""Funciones de utilidad para el servicio de autenticación: hash de contraseñas, ids y emails."""

import os
import logging
import uuid
from typing import Iterable, Optional

from passlib.context import CryptContext
from dotenv import load_dotenv

# Carga variables de entorno desde .env
load_dotenv()

# Configuración del logger
logger = logging.getLogger(__name__)

# --- Configuración de Seguridad ---
DEFAULT_BCRYPT_ROUNDS = 10
MIN_BCRYPT_ROUNDS = 4
MAX_BCRYPT_ROUNDS = 31


def _read_bcrypt_rounds() -> int:
    raw = os.getenv("BCRYPT_ROUNDS")
    if raw is None:
        return DEFAULT_BCRYPT_ROUNDS
    try:
        rounds = int(raw)
    except ValueError:
        rounds = -1
    if not MIN_BCRYPT_ROUNDS <= rounds <= MAX_BCRYPT_ROUNDS:
        logger.error(
            f"BCRYPT_ROUNDS={raw!r} is not a valid bcrypt cost "
            f"({MIN_BCRYPT_ROUNDS}-{MAX_BCRYPT_ROUNDS}). Using {DEFAULT_BCRYPT_ROUNDS}."
        )
        return DEFAULT_BCRYPT_ROUNDS
    return rounds


BCRYPT_ROUNDS = _read_bcrypt_rounds()


def build_password_context(rounds: int = BCRYPT_ROUNDS) -> CryptContext:
    """Crea el contexto de passlib (bcrypt) con el factor de coste indicado."""
    return CryptContext(
        schemes=["bcrypt"],
        deprecated="auto",
        bcrypt__rounds=rounds,
    )


pwd_context = build_password_context()


def get_password_hash(password: str, context: Optional[CryptContext] = None) -> str:
    """Genera el hash de una contraseña plana usando bcrypt (sal aleatoria incluida)."""
    return (context or pwd_context).hash(password)


def verify_password(plain_password: str, hashed_password: str, context: Optional[CryptContext] = None) -> bool:
    """
    Verifica una contraseña plana contra un hash almacenado.

    Raises:
        ValueError / TypeError: si el hash almacenado no es un hash válido.
    """
    return (context or pwd_context).verify(plain_password, hashed_password)


# --- Utilidades de Usuario ---

def normalize_email(email: str) -> str:
    """Forma usada para comparar emails (sin distinguir mayúsculas)."""
    return email.lower()


def generate_user_id(existing_ids: Iterable[str] = ()) -> str:
    """Genera un id opaco (uuid4) que no choca con ninguno de los existentes."""
    taken = set(existing_ids)
    user_id = uuid.uuid4().hex
    while user_id in taken:
        user_id = uuid.uuid4().hex
    return user_id
