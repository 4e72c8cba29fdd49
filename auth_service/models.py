"""Define el registro de usuario que se persiste en el archivo de usuarios."""

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class UserRecord(BaseModel):
    """
    Registro de un usuario tal como se guarda en el snapshot JSON.
    Almacena la información de autenticación de los usuarios.
    """

    model_config = ConfigDict(frozen=True)

    # Identificador opaco, asignado al crear el usuario
    id: str = Field(..., min_length=1)

    name: str = Field(..., min_length=1)

    # Se conserva el email tal como se registró; la comparación usa la forma normalizada
    email: str = Field(..., min_length=1)

    # Hash bcrypt de la contraseña. Los archivos antiguos lo guardan bajo la clave "password".
    hashed_password: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("hashed_password", "password"),
    )

    # Nota: nunca se almacena la contraseña en texto plano.
