"""
Lógica de registro y autenticación.

El servicio no guarda estado entre peticiones: valida la entrada, consulta
el almacén y calcula/verifica hashes. El único estado compartido es el
archivo de usuarios, cuyas escrituras se serializan con un lock.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Optional, Sequence

from passlib.context import CryptContext
from passlib.exc import PasswordValueError

from auth_service.db import UserStore, get_store
from auth_service.exceptions import (
    DuplicateEmailError,
    InternalError,
    InvalidCredentialsError,
    StorageError,
    ValidationError,
)
from auth_service.models import UserRecord
from auth_service.utils import (
    generate_user_id,
    get_password_hash,
    normalize_email,
    pwd_context,
    verify_password,
)

logger = logging.getLogger(__name__)

SIGNUP_FIELDS_REQUIRED = "Name, email and password are required."
LOGIN_FIELDS_REQUIRED = "Email and password are required."
UNSUPPORTED_PASSWORD = "Password contains unsupported characters."


@dataclass(frozen=True)
class AuthenticatedUser:
    name: str
    email: str


def _find_by_email(records: Sequence[UserRecord], email: str) -> Optional[UserRecord]:
    normalized = normalize_email(email)
    for record in records:
        if normalize_email(record.email) == normalized:
            return record
    return None


class AuthService:
    def __init__(self, store: UserStore, password_context: Optional[CryptContext] = None):
        self.store = store
        self.password_context = password_context or pwd_context
        # Protege la secuencia cargar -> comprobar -> añadir -> guardar
        self._write_lock = threading.Lock()

    def register(self, name: Optional[str], email: Optional[str], password: Optional[str]) -> UserRecord:
        """
        Registra un usuario nuevo.

        Raises:
            ValidationError: falta alguno de los campos o bcrypt no acepta la contraseña.
            DuplicateEmailError: ya existe un usuario con ese email (sin distinguir mayúsculas).
            InternalError: no se pudo leer o guardar el archivo de usuarios.
        """
        if not name or not email or not password:
            raise ValidationError(SIGNUP_FIELDS_REQUIRED)

        logger.info(f"Registration attempt for email: {email}")

        # Comprobación rápida sin lock para no pagar el hash en duplicados evidentes
        if _find_by_email(self._load(), email) is not None:
            logger.warning(f"Registration failed: Email {email} already exists.")
            raise DuplicateEmailError()

        try:
            hashed_password = get_password_hash(password, self.password_context)
        except PasswordValueError as e:
            # Contraseña que bcrypt no acepta (p. ej. con bytes NUL): error del cliente
            logger.warning(f"Registration failed: unsupported password for email {email}: {e}")
            raise ValidationError(UNSUPPORTED_PASSWORD) from e
        except ValueError as e:
            logger.error(f"Could not hash password for email {email}: {e}", exc_info=True)
            raise InternalError() from e

        with self._write_lock:
            records = self._load()
            if _find_by_email(records, email) is not None:
                logger.warning(f"Registration failed: Email {email} already exists.")
                raise DuplicateEmailError()

            new_user = UserRecord(
                id=generate_user_id(r.id for r in records),
                name=name,
                email=email,
                hashed_password=hashed_password,
            )
            try:
                self.store.save_all([*records, new_user])
            except StorageError as e:
                logger.error(f"Could not save user for email {email}: {e}")
                raise InternalError() from e

        logger.info(f"User created with ID: {new_user.id} for email: {email}")
        return new_user

    def authenticate(self, email: Optional[str], password: Optional[str]) -> AuthenticatedUser:
        """
        Comprueba las credenciales y devuelve nombre y email del usuario.

        Email inexistente y contraseña incorrecta producen el mismo error.
        """
        if not email or not password:
            raise ValidationError(LOGIN_FIELDS_REQUIRED)

        logger.info(f"Login attempt for user: {email}")
        user = _find_by_email(self._load(), email)

        if user is None:
            # Mismo coste que una verificación real
            self.password_context.dummy_verify()
            logger.warning(f"Login failed for user: {email}")
            raise InvalidCredentialsError()

        try:
            match = verify_password(password, user.hashed_password, self.password_context)
        except PasswordValueError as e:
            # La contraseña enviada no es válida para bcrypt: cuenta como credenciales incorrectas
            logger.warning(f"Login failed for user: {email} ({e})")
            raise InvalidCredentialsError() from e
        except (ValueError, TypeError) as e:
            logger.error(f"Could not verify password for user_id {user.id}: {e}", exc_info=True)
            raise InternalError() from e

        if not match:
            logger.warning(f"Login failed for user: {email}")
            raise InvalidCredentialsError()

        logger.info(f"Login successful for user_id: {user.id}")
        return AuthenticatedUser(name=user.name, email=user.email)

    def _load(self) -> Sequence[UserRecord]:
        try:
            return self.store.load_all()
        except StorageError as e:
            raise InternalError() from e


# --- Ciclo de vida del servicio ---
_service: Optional[AuthService] = None
_service_lock = threading.Lock()


def get_auth_service() -> AuthService:
    """Dependencia de FastAPI: servicio compartido por todo el proceso."""
    global _service
    with _service_lock:
        if _service is None:
            _service = AuthService(get_store())
        return _service
