import json
import logging
from typing import Any, Dict, Tuple

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError
from starlette.datastructures import UploadFile

from app.core.exceptions import SubmissionError
from app.schemas.form_schemas import SubmissionRecord, SubmissionResponse
from app.schemas.upload_schema import FileGroups, FileItem
from app.services.form_registry import (
    FormDefinition,
    get_form_definitions,
    REGISTRO_EMPRESA,
    KYC_PERSONA_FISICA,
    SOLICITUD_TOKEN,
    CONTACTO,
)
from app.services.submission_service import SubmissionService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/formularios", tags=["Formularios"])
form_definitions = get_form_definitions()


# Returns the submission service built at startup or 503 if it is unavailable
def get_submission_service(request: Request) -> SubmissionService:
    service = getattr(request.app.state, "submission_service", None)
    if service is None:
        logger.error("Submission service is not initialized")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Submission service is not initialized. Please contact system administrator.",
        )
    return service


# Splits a multipart body into text fields and the form's declared file groups
async def parse_multipart(request: Request, definition: FormDefinition) -> Tuple[Dict[str, str], FileGroups]:
    form = await request.form()
    fields: Dict[str, str] = {}
    file_groups: FileGroups = {}

    for name, value in form.multi_items():
        if isinstance(value, UploadFile):
            if name not in definition.file_groups:
                raise HTTPException(status_code=400, detail=f"Unexpected field: {name}")
            data = await value.read()
            if not value.filename and not data:
                continue
            items = file_groups.setdefault(name, [])
            if len(items) >= definition.file_groups[name]:
                raise HTTPException(status_code=400, detail=f"Too many files for field: {name}")
            items.append(
                FileItem(
                    filename=value.filename or "",
                    content_type=value.content_type or "application/octet-stream",
                    data=data,
                )
            )
        else:
            fields[name] = value

    return fields, file_groups


async def parse_json(request: Request) -> Dict[str, Any]:
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise HTTPException(status_code=400, detail="Invalid JSON body")
    if not isinstance(body, dict):
        raise HTTPException(status_code=400, detail="JSON body must be an object")
    return body


def validate_record(definition: FormDefinition, fields: Dict[str, Any]) -> SubmissionRecord:
    try:
        return definition.schema.model_validate(fields)
    except ValidationError as e:
        raise RequestValidationError(e.errors(include_url=False, include_context=False))


async def run_submission(
    service: SubmissionService,
    definition: FormDefinition,
    record: SubmissionRecord,
    file_groups: FileGroups,
    background_tasks: BackgroundTasks,
) -> Dict[str, Any]:
    try:
        return await service.process(definition, record, file_groups, background_tasks)
    except SubmissionError:
        raise
    except Exception as e:
        logger.error(f"Unexpected error in {definition.key}: {e}")
        raise SubmissionError()


# Company registration (KYB): text fields plus up to 16 document groups
@router.post("/registro-empresa", response_model=SubmissionResponse, status_code=status.HTTP_201_CREATED)
async def registrar_empresa(
    request: Request,
    background_tasks: BackgroundTasks,
    service: SubmissionService = Depends(get_submission_service),
):
    logger.info("Receiving KYB company registration...")
    definition = form_definitions[REGISTRO_EMPRESA]
    fields, file_groups = await parse_multipart(request, definition)
    record = validate_record(definition, fields)
    return await run_submission(service, definition, record, file_groups, background_tasks)


# Individual onboarding (KYC): multipart with identity documents, or plain JSON
@router.post("/kyc-persona-fisica", response_model=SubmissionResponse, status_code=status.HTTP_201_CREATED)
async def recibir_solicitud_kyc(
    request: Request,
    background_tasks: BackgroundTasks,
    service: SubmissionService = Depends(get_submission_service),
):
    logger.info("Receiving KYC onboarding request...")
    definition = form_definitions[KYC_PERSONA_FISICA]
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("application/json"):
        fields, file_groups = await parse_json(request), {}
    else:
        fields, file_groups = await parse_multipart(request, definition)
    record = validate_record(definition, fields)
    return await run_submission(service, definition, record, file_groups, background_tasks)


# Token purchase interest: JSON only, no files
@router.post("/solicitud-token", response_model=SubmissionResponse, status_code=status.HTTP_201_CREATED)
async def recibir_solicitud_token(
    request: Request,
    background_tasks: BackgroundTasks,
    service: SubmissionService = Depends(get_submission_service),
):
    logger.info("Receiving token request...")
    definition = form_definitions[SOLICITUD_TOKEN]
    record = validate_record(definition, await parse_json(request))
    return await run_submission(service, definition, record, {}, background_tasks)


@router.post("/contacto", response_model=SubmissionResponse, status_code=status.HTTP_201_CREATED)
async def recibir_contacto(
    request: Request,
    background_tasks: BackgroundTasks,
    service: SubmissionService = Depends(get_submission_service),
):
    logger.info("Receiving contact form...")
    definition = form_definitions[CONTACTO]
    fields, file_groups = await parse_multipart(request, definition)
    record = validate_record(definition, fields)
    return await run_submission(service, definition, record, file_groups, background_tasks)
