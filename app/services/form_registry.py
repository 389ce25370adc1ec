from dataclasses import dataclass, field
from typing import Dict, Optional, Type

from app.core.config import Settings, settings
from app.schemas.form_schemas import (
    SubmissionRecord,
    RegistroEmpresaForm,
    KycPersonaFisicaForm,
    SolicitudTokenForm,
    ContactoForm,
)

REGISTRO_EMPRESA = "registro-empresa"
KYC_PERSONA_FISICA = "kyc-persona-fisica"
SOLICITUD_TOKEN = "solicitud-token"
CONTACTO = "contacto"

EMPRESAS_BUCKET = "registros-empresas"
KYC_BUCKET = "kyc-documentos-usuarios"

# Upload field name -> max files accepted for that field
REGISTRO_EMPRESA_FILE_GROUPS: Dict[str, int] = {
    "organigrama": 5,
    "geolocalizacion": 5,
    "comprobante_domicilio": 5,
    "constancia_domicilio_fiscal": 5,
    "estatuto_social": 5,
    "acta_constitucion": 5,
    "ultima_acta_designacion": 5,
    "comprobante_cuit": 5,
    "constancia_inscripcion": 5,
    "estados_financieros": 5,
    "constancia_bancaria": 5,
    "libro_acciones": 5,
    "docs_identidad_socios": 10,
    "manifestacion_bienes": 10,
    "dni_representantes": 5,
    "poder_notarial": 5,
}

KYC_FILE_GROUPS: Dict[str, int] = {
    "documento_identidad": 10,
    "comprobante_domicilio_servicio": 10,
    "comprobante_domicilio_alternativo": 10,
}

CONTACTO_FILE_GROUPS: Dict[str, int] = {
    "logo": 1,
}


@dataclass(frozen=True)
class FormDefinition:
    """Everything that differs between two form types."""

    key: str
    schema: Type[SubmissionRecord]
    table: str
    success_message: str
    next_step_url: str
    bucket: Optional[str] = None
    file_groups: Dict[str, int] = field(default_factory=dict)

    @property
    def accepts_files(self) -> bool:
        return bool(self.file_groups) and self.bucket is not None


def get_form_definitions(config: Settings = settings) -> Dict[str, FormDefinition]:
    definitions = [
        FormDefinition(
            key=REGISTRO_EMPRESA,
            schema=RegistroEmpresaForm,
            table="registros_market",
            bucket=EMPRESAS_BUCKET,
            file_groups=REGISTRO_EMPRESA_FILE_GROUPS,
            success_message="Registro de empresa procesado con éxito!",
            next_step_url=config.KYB_NEXT_STEP_URL,
        ),
        FormDefinition(
            key=KYC_PERSONA_FISICA,
            schema=KycPersonaFisicaForm,
            table="solicitudes_token",
            bucket=KYC_BUCKET,
            file_groups=KYC_FILE_GROUPS,
            success_message="Solicitud KYC recibida y guardada con éxito!",
            next_step_url=config.KYC_NEXT_STEP_URL,
        ),
        FormDefinition(
            key=SOLICITUD_TOKEN,
            schema=SolicitudTokenForm,
            table="solicitudes_token",
            success_message="Solicitud de token recibida y guardada con éxito!",
            next_step_url=config.TOKEN_NEXT_STEP_URL,
        ),
        FormDefinition(
            key=CONTACTO,
            schema=ContactoForm,
            table="contactos",
            bucket=EMPRESAS_BUCKET,
            file_groups=CONTACTO_FILE_GROUPS,
            success_message="Contacto recibido con éxito!",
            next_step_url=config.CONTACT_NEXT_STEP_URL,
        ),
    ]
    return {definition.key: definition for definition in definitions}
