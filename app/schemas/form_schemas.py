from pydantic import BaseModel, ConfigDict, Field, AliasChoices, BeforeValidator, StrictBool
from typing import Annotated, Optional, Dict, Any, Union


# Unchecked HTML checkboxes are not sent at all, so only the literal "on" counts
def coerce_checkbox(value: Any) -> bool:
    return value == "on"


ConsentCheckbox = Annotated[bool, BeforeValidator(coerce_checkbox)]

# JSON bodies may carry true/false in free-text columns; those are stored as sent
TextValue = Optional[Union[StrictBool, str]]


def _text(value: TextValue) -> Optional[str]:
    return value if isinstance(value, str) else None


class SubmissionRecord(BaseModel):
    """Base for the structured text part of a form post.

    Field names are the column names of the target table; anything the form
    sends that is not declared here is dropped.
    """

    model_config = ConfigDict(
        extra="ignore",
        populate_by_name=True,
        str_strip_whitespace=True,
        coerce_numbers_to_str=True,
    )

    def recipient_email(self) -> Optional[str]:
        return None

    def display_name(self) -> str:
        return ""

    def to_row(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


class RegistroEmpresaForm(SubmissionRecord):
    """Company onboarding (KYB)."""

    nombre_empresa: TextValue = None
    cuit_empresa: TextValue = None
    direccion_sede: TextValue = None
    email_empresa: TextValue = None
    telefono_empresa: TextValue = None
    sitio_web: TextValue = None
    fondos_licitos: ConsentCheckbox = False

    def recipient_email(self) -> Optional[str]:
        return _text(self.email_empresa)

    def display_name(self) -> str:
        return _text(self.nombre_empresa) or ""


class KycPersonaFisicaForm(SubmissionRecord):
    """Individual onboarding (KYC); stored alongside token requests."""

    nombre: TextValue = None
    apellido: TextValue = None
    cuit_cuil: TextValue = Field(None, validation_alias=AliasChoices("cuit_cuil", "numero_documento"))
    fecha_nacimiento: TextValue = None
    nacionalidad: TextValue = None
    domicilio: TextValue = Field(None, validation_alias=AliasChoices("domicilio", "direccion"))
    email: TextValue = None
    telefono: TextValue = None
    capital_inversion: TextValue = Field(
        None, validation_alias=AliasChoices("capital_inversion", "fuente_ingresos")
    )
    justificacion_servicios: TextValue = None
    pep_status: TextValue = None
    dj_origen_fondos: ConsentCheckbox = False
    fondos_licitos: ConsentCheckbox = False

    def recipient_email(self) -> Optional[str]:
        return _text(self.email)

    def display_name(self) -> str:
        return " ".join(part for part in (_text(self.nombre), _text(self.apellido)) if part)


class SolicitudTokenForm(SubmissionRecord):
    """Token purchase interest; text only."""

    nombre: TextValue = None
    apellido: TextValue = None
    cuit_cuil: TextValue = None
    domicilio: TextValue = None
    email: TextValue = None
    telefono: TextValue = None
    capital_inversion: TextValue = None
    motivo_interes: TextValue = None
    experiencia_inversor: TextValue = None
    comentarios: TextValue = None

    def recipient_email(self) -> Optional[str]:
        return _text(self.email)

    def display_name(self) -> str:
        return _text(self.nombre) or ""


class ContactoForm(SubmissionRecord):
    nombre_empresa: TextValue = None
    email: TextValue = None
    telefono: TextValue = None

    def recipient_email(self) -> Optional[str]:
        return _text(self.email)

    def display_name(self) -> str:
        return _text(self.nombre_empresa) or ""


class SubmissionResponse(BaseModel):
    message: str
    data: Dict[str, Any]
