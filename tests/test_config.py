import pytest

from krops.cache import ReportCache
from krops.config import get_settings
from krops.errors import ConfigurationError
from krops.factory import build_pipeline
from krops.sample import DemoAgronomist

ENV_KEYS = ["GOOGLE_API_KEY", "KROPS_DEMO_MODE", "KROPS_CACHE_SIZE", "KROPS_ANALYSIS_MODEL", "KROPS_IMAGE_MODEL", "KROPS_LOG_LEVEL"]


@pytest.fixture
def clean_env(monkeypatch):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    return monkeypatch


def test_defaults(clean_env):
    settings = get_settings()
    assert settings.google_api_key is None
    assert settings.analysis_model == "gemini-2.5-flash"
    assert settings.image_model == "gemini-2.5-flash-image"
    assert settings.cache_size == 5
    assert settings.demo_mode is False
    assert settings.log_level == "INFO"


@pytest.mark.parametrize("raw,expected", [("1", True), ("Yes", True), ("on", True), ("0", False), ("", False)])
def test_demo_flag(clean_env, raw, expected):
    clean_env.setenv("KROPS_DEMO_MODE", raw)
    assert get_settings().demo_mode is expected


def test_live_pipeline_needs_api_key(clean_env, cache_path):
    with pytest.raises(ConfigurationError):
        build_pipeline(get_settings(), ReportCache(cache_path))


def test_demo_pipeline_needs_no_key(clean_env, cache_path):
    clean_env.setenv("KROPS_DEMO_MODE", "1")
    pipeline = build_pipeline(get_settings(), ReportCache(cache_path))
    assert isinstance(pipeline.analyzer, DemoAgronomist)


@pytest.mark.parametrize("raw", ["five", "2.5", "0", "-3"])
def test_bad_cache_size_is_a_configuration_error(clean_env, raw):
    clean_env.setenv("KROPS_CACHE_SIZE", raw)
    with pytest.raises(ConfigurationError, match="KROPS_CACHE_SIZE"):
        get_settings()


def test_cache_size_is_read_from_env(clean_env):
    clean_env.setenv("KROPS_CACHE_SIZE", "3")
    assert get_settings().cache_size == 3
