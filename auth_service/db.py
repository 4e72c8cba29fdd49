"""Almacén de usuarios: un único archivo JSON que se lee y se reescribe completo (snapshot)."""

import os
import json
import logging
import tempfile
import threading
from pathlib import Path
from typing import List, Optional, Sequence, Union

from dotenv import load_dotenv
from pydantic import TypeAdapter, ValidationError as PydanticValidationError

from auth_service.exceptions import StorageReadError, StorageWriteError
from auth_service.models import UserRecord

# Configuración del logger
logger = logging.getLogger(__name__)

# Carga variables de entorno desde el archivo .env
load_dotenv()

# Ruta del archivo de usuarios y modo de lectura
USERS_FILE = os.getenv("USERS_FILE", "users.json")
STRICT_STORE = os.getenv("STRICT_STORE", "false").strip().lower() in {"1", "true", "yes", "on"}

_records_adapter = TypeAdapter(List[UserRecord])


class UserStore:
    """
    Persistencia del conjunto completo de usuarios.

    No hay actualizaciones parciales: quien escribe carga todo, modifica en
    memoria y guarda todo. Cada escritura reemplaza el archivo de forma
    atómica, así que un lector nunca ve un archivo a medio escribir.
    Serializar escrituras concurrentes es responsabilidad del llamador.
    """

    def __init__(self, path: Union[str, Path], strict: bool = False):
        self.path = Path(path)
        self.strict = strict

    def load_all(self) -> List[UserRecord]:
        """
        Lee el snapshot completo.

        Si el archivo no existe se inicializa vacío. Si existe pero no es una
        lista de usuarios válida se devuelve una lista vacía (o se lanza
        StorageReadError en modo estricto).
        """
        if not self.path.exists():
            self._initialize()
            return []

        try:
            raw = self.path.read_text(encoding="utf-8")
        except OSError as e:
            logger.error(f"Could not read users file {self.path}: {e}", exc_info=True)
            raise StorageReadError(f"Could not read {self.path}") from e

        # Archivo recién creado por otro hilo que aún no escribió "[]"
        if not raw.strip():
            return []

        try:
            return _records_adapter.validate_python(json.loads(raw))
        except (ValueError, PydanticValidationError) as e:
            if self.strict:
                logger.error(f"Users file {self.path} is corrupt: {e}")
                raise StorageReadError(f"Users file {self.path} is corrupt") from e
            logger.warning(f"Users file {self.path} is corrupt, treating it as empty: {e}")
            return []

    def _initialize(self) -> None:
        # Creación exclusiva: nunca pisa un snapshot que otro hilo acaba de guardar
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "x", encoding="utf-8") as handle:
                handle.write("[]")
            logger.info(f"Users file {self.path} not found. Initialized empty store.")
        except FileExistsError:
            pass
        except OSError as e:
            logger.error(f"Could not initialize users file {self.path}: {e}", exc_info=True)
            raise StorageWriteError(f"Could not create {self.path}") from e

    def save_all(self, records: Sequence[UserRecord]) -> None:
        """
        Reemplaza el snapshot completo con `records`.

        Raises:
            StorageWriteError: si el archivo no se pudo escribir.
        """
        payload = json.dumps([r.model_dump() for r in records], indent=2)
        tmp_name: Optional[str] = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
            )
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(payload)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, self.path)
            tmp_name = None
        except OSError as e:
            logger.error(f"Could not write users file {self.path}: {e}", exc_info=True)
            raise StorageWriteError(f"Could not write {self.path}") from e
        finally:
            if tmp_name is not None:
                try:
                    os.unlink(tmp_name)
                except OSError:
                    logger.warning(f"Could not remove temporary file {tmp_name}")


# --- Ciclo de vida del almacén ---
# Se crea en el primer uso; no necesita cierre explícito.
_store: Optional[UserStore] = None
_store_lock = threading.Lock()


def get_store() -> UserStore:
    """Devuelve el almacén del proceso, creándolo la primera vez."""
    global _store
    with _store_lock:
        if _store is None:
            _store = UserStore(USERS_FILE, strict=STRICT_STORE)
            logger.info(f"User store ready at {_store.path} (strict={STRICT_STORE}).")
        return _store
