import asyncio

import pytest

from app.core.exceptions import UploadFailedError
from app.schemas.upload_schema import FileItem
from app.services.storage_service import UploadResult
from app.services.upload_orchestrator import (
    UploadOrchestrator,
    build_storage_key,
    sanitize_filename,
)
from tests.fakes import FakeStorage


def _file(name, data=b"data", content_type="application/pdf"):
    return FileItem(filename=name, content_type=content_type, data=data)


def _fixed_clock():
    return 1700000000000


def test_sanitize_filename_replaces_unsafe_characters():
    assert sanitize_filename("Doc Final.pdf") == "Doc_Final.pdf"
    assert sanitize_filename("../etc/passwd") == ".._etc_passwd"
    assert sanitize_filename("año-2024_v1.PDF") == "a_o-2024_v1.PDF"
    assert sanitize_filename("") == "archivo"
    assert sanitize_filename(None) == "archivo"


@pytest.mark.parametrize("name", ["Doc Final.pdf", "estatuto (copia) #2.pdf", "数据.png", "ok-name_1.txt"])
def test_sanitize_filename_is_idempotent(name):
    once = sanitize_filename(name)
    assert sanitize_filename(once) == once


def test_build_storage_key_layout():
    key = build_storage_key("public", "estatuto_social", 1700000000000, 2, "Doc Final.pdf")
    assert key == "public/estatuto_social/1700000000000-2-Doc_Final.pdf"


@pytest.mark.asyncio
async def test_same_filename_same_millisecond_gets_distinct_keys():
    storage = FakeStorage()
    orchestrator = UploadOrchestrator(storage, clock=_fixed_clock)

    await orchestrator.upload_all({"dni_representantes": [_file("dni.jpg"), _file("dni.jpg")]}, "bucket")

    keys = [key for _, key, _, _ in storage.uploads]
    assert len(set(keys)) == 2
    assert "public/dni_representantes/1700000000000-0-dni.jpg" in keys
    assert "public/dni_representantes/1700000000000-1-dni.jpg" in keys


@pytest.mark.asyncio
async def test_upload_all_returns_urls_per_group_in_submitted_order():
    storage = FakeStorage()
    orchestrator = UploadOrchestrator(storage, prefix="public", clock=_fixed_clock)

    result = await orchestrator.upload_all(
        {
            "estatuto_social": [_file("a.pdf"), _file("b.pdf"), _file("c.pdf")],
            "organigrama": [_file("org.png", content_type="image/png")],
            "poder_notarial": [],
        },
        "registros-empresas",
    )

    assert set(result) == {"estatuto_social", "organigrama"}
    assert result["estatuto_social"] == [
        "https://storage.test/registros-empresas/public/estatuto_social/1700000000000-0-a.pdf",
        "https://storage.test/registros-empresas/public/estatuto_social/1700000000000-1-b.pdf",
        "https://storage.test/registros-empresas/public/estatuto_social/1700000000000-2-c.pdf",
    ]


@pytest.mark.asyncio
async def test_upload_all_with_no_files_does_nothing():
    storage = FakeStorage()
    orchestrator = UploadOrchestrator(storage)

    assert await orchestrator.upload_all({"logo": []}, "bucket") == {}
    assert await orchestrator.upload_all({}, "bucket") == {}
    assert storage.uploads == []


@pytest.mark.asyncio
async def test_every_file_of_every_group_is_in_flight_at_once():
    storage = FakeStorage(delay=0.02)
    orchestrator = UploadOrchestrator(storage)

    await orchestrator.upload_all(
        {
            "documento_identidad": [_file("front.jpg"), _file("back.jpg")],
            "comprobante_domicilio_servicio": [_file("luz.pdf")],
            "comprobante_domicilio_alternativo": [_file("agua.pdf"), _file("gas.pdf")],
        },
        "kyc-documentos-usuarios",
    )

    assert storage.max_in_flight == 5


@pytest.mark.asyncio
async def test_failure_names_every_failing_group_and_keeps_successful_paths():
    storage = FakeStorage(fail_groups={"estatuto_social", "libro_acciones"})
    orchestrator = UploadOrchestrator(storage, clock=_fixed_clock)
    uploaded_paths = []

    with pytest.raises(UploadFailedError) as exc_info:
        await orchestrator.upload_all(
            {
                "organigrama": [_file("org.png")],
                "estatuto_social": [_file("est.pdf")],
                "libro_acciones": [_file("libro.pdf"), _file("libro2.pdf")],
            },
            "registros-empresas",
            uploaded_paths=uploaded_paths,
        )

    error = exc_info.value
    assert error.groups == ["estatuto_social", "libro_acciones"]
    assert len(error.failures["libro_acciones"]) == 2
    assert error.message == "Fallo al subir archivos para: estatuto_social, libro_acciones"
    # no rollback: the file that made it stays and is reported to the caller
    assert uploaded_paths == ["public/organigrama/1700000000000-0-org.png"]


@pytest.mark.asyncio
async def test_exception_from_storage_counts_as_failed_upload():
    class ExplodingStorage(FakeStorage):
        async def upload(self, bucket, key, data, content_type):
            raise ConnectionError("connection reset")

    orchestrator = UploadOrchestrator(ExplodingStorage())

    with pytest.raises(UploadFailedError) as exc_info:
        await orchestrator.upload_all({"logo": [_file("logo.png")]}, "bucket")

    assert exc_info.value.failures == {"logo": ["connection reset"]}


@pytest.mark.asyncio
async def test_success_without_path_is_left_out_of_urls():
    class PathlessStorage(FakeStorage):
        async def upload(self, bucket, key, data, content_type):
            if key.endswith("ghost.pdf"):
                return UploadResult(path=None)
            return UploadResult(path=key)

    orchestrator = UploadOrchestrator(PathlessStorage(), clock=_fixed_clock)

    result = await orchestrator.upload_all({"estatuto_social": [_file("real.pdf"), _file("ghost.pdf")]}, "b")

    assert result == {"estatuto_social": ["https://storage.test/b/public/estatuto_social/1700000000000-0-real.pdf"]}


@pytest.mark.asyncio
async def test_url_resolution_error_waits_for_other_groups_and_names_the_group():
    class BrokenUrlStorage(FakeStorage):
        async def upload(self, bucket, key, data, content_type):
            if "/organigrama/" in key:
                await asyncio.sleep(0.05)
            return await super().upload(bucket, key, data, content_type)

        def get_public_url(self, bucket, path):
            if "/estatuto_social/" in path:
                raise RuntimeError("storage url service down")
            return super().get_public_url(bucket, path)

    orchestrator = UploadOrchestrator(BrokenUrlStorage(), clock=_fixed_clock)
    uploaded_paths = []

    with pytest.raises(UploadFailedError) as exc_info:
        await orchestrator.upload_all(
            {"estatuto_social": [_file("a.pdf")], "organigrama": [_file("o.pdf")]},
            "registros-empresas",
            uploaded_paths=uploaded_paths,
        )

    assert exc_info.value.groups == ["estatuto_social"]
    assert exc_info.value.failures == {"estatuto_social": ["storage url service down"]}
    assert sorted(uploaded_paths) == [
        "public/estatuto_social/1700000000000-0-a.pdf",
        "public/organigrama/1700000000000-0-o.pdf",
    ]
