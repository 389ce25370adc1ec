import logging

from app.core.config import Settings, log_configuration_warnings, mask_secret
from app.services.form_registry import get_form_definitions


def _settings(**overrides):
    config = Settings()
    config.SUPABASE_URL = "https://project.supabase.co"
    config.SUPABASE_SERVICE_ROLE = "service-role-key-abcdef"
    config.SUPABASE_ANON_PUBLIC = None
    config.SENDGRID_API_KEY = "SG.key-1234567890"
    for name, value in overrides.items():
        setattr(config, name, value)
    return config


def test_mask_secret():
    assert mask_secret(None) == "<missing>"
    assert mask_secret("short") == "*****"
    assert mask_secret("SG.abcdefghijkl") == "SG.a...ijkl"


def test_missing_sendgrid_key_disables_email_without_failing(caplog):
    config = _settings(SENDGRID_API_KEY=None)

    with caplog.at_level(logging.INFO, logger="app.core.config"):
        log_configuration_warnings(config)

    assert config.email_enabled is False
    assert "Email sending will be disabled" in caplog.text


def test_anon_key_fallback_is_reported(caplog):
    config = _settings(SUPABASE_SERVICE_ROLE=None, SUPABASE_ANON_PUBLIC="anon-key-abcdefgh")

    with caplog.at_level(logging.INFO, logger="app.core.config"):
        log_configuration_warnings(config)

    assert config.supabase_key == "anon-key-abcdefgh"
    assert "reduced privileges" in caplog.text
    assert "anon-key-abcdefgh" not in caplog.text


def test_full_configuration_logs_no_errors(caplog):
    with caplog.at_level(logging.INFO, logger="app.core.config"):
        log_configuration_warnings(_settings())

    assert not [r for r in caplog.records if r.levelno >= logging.WARNING]
    assert "SG.key-1234567890" not in caplog.text


def test_form_definitions_use_configured_next_step_urls():
    definitions = get_form_definitions(_settings(KYB_NEXT_STEP_URL="https://kyb.test/start"))

    assert definitions["registro-empresa"].next_step_url == "https://kyb.test/start"
    assert definitions["registro-empresa"].bucket == "registros-empresas"
    assert len(definitions["registro-empresa"].file_groups) == 16
    assert definitions["kyc-persona-fisica"].bucket == "kyc-documentos-usuarios"
    assert definitions["solicitud-token"].accepts_files is False
