import pytest

from app.core.container import Container
from app.core.settings import DuplicatePolicy, Settings, SettingsValidationError


@pytest.fixture
def clean_env(monkeypatch):
    for k in ("PORT", "HOST", "RESERIALIZE", "DUPLICATE_POLICY", "MAX_BODY_BYTES", "LOG_LEVEL",
              "RELAY_AUDIT_DB_PATH", "AUDIT_DB_PATH", "CORS_ORIGINS"):
        monkeypatch.delenv(k, raising=False)
    return monkeypatch


def test_defaults(clean_env):
    s = Settings()
    assert s.PORT == 3001
    assert s.RESERIALIZE is False
    assert s.mode == "pass_through"
    assert s.DUPLICATE_POLICY is DuplicatePolicy.REJECT
    assert s.cors_allow_all is True
    assert s.AUDIT_DB_PATH == ""


@pytest.mark.parametrize("raw, expected", [("1", True), ("0", False), ("true", True), ("off", False)])
def test_reserialize_flag(clean_env, raw, expected):
    clean_env.setenv("RESERIALIZE", raw)
    assert Settings().RESERIALIZE is expected


def test_bad_flag_fails_fast(clean_env):
    clean_env.setenv("RESERIALIZE", "maybe")
    with pytest.raises(SettingsValidationError) as e:
        Settings()
    assert e.value.field == "RESERIALIZE"


def test_port_validation(clean_env):
    clean_env.setenv("PORT", "70000")
    with pytest.raises(SettingsValidationError):
        Settings()
    clean_env.setenv("PORT", "eighty")
    with pytest.raises(SettingsValidationError):
        Settings()


def test_duplicate_policy_parsing(clean_env):
    clean_env.setenv("DUPLICATE_POLICY", "Overwrite")
    assert Settings().DUPLICATE_POLICY is DuplicatePolicy.OVERWRITE
    clean_env.setenv("DUPLICATE_POLICY", "merge")
    with pytest.raises(SettingsValidationError):
        Settings()


def test_audit_path_fallback(clean_env):
    clean_env.setenv("AUDIT_DB_PATH", "/tmp/audit.db")
    assert Settings().AUDIT_DB_PATH == "/tmp/audit.db"
    clean_env.setenv("RELAY_AUDIT_DB_PATH", "/tmp/relay.db")
    assert Settings().AUDIT_DB_PATH == "/tmp/relay.db"


def test_container_passes_mode_into_store(clean_env):
    c = Container(Settings(RESERIALIZE=True, DUPLICATE_POLICY=DuplicatePolicy.OVERWRITE))
    assert c.transaction_store.reserialize is True
    assert c.transaction_store.duplicate_policy == "overwrite"
    assert c.audit_log.enabled() is False


def test_to_dict(clean_env):
    d = Settings().to_dict()
    assert d["DUPLICATE_POLICY"] == "reject"
    assert d["CORS_ORIGINS"] == ["*"]
