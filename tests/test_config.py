from app.core.config import Settings, normalize_environment, resolve_env_files
from utils.constants import DEFAULT_CORS_ORIGINS


def test_normalize_environment():
    assert normalize_environment("prod") == "production"
    assert normalize_environment(" Stage ") == "staging"
    assert normalize_environment("qa") == "development"
    assert normalize_environment(None) == "development"


def test_env_files_lowest_priority_first(tmp_path):
    for name in (".env", ".env.production", ".env.production.local"):
        (tmp_path / name).write_text("")

    files = resolve_env_files("production", tmp_path)

    assert [f.rsplit("/", 1)[-1] for f in files] == [".env", ".env.production", ".env.production.local"]


def test_cors_origins_merge_defaults():
    settings = Settings(CORS_ORIGINS="https://shop.example.com/, http://localhost:3000")

    origins = settings.cors_origins

    assert origins[:len(DEFAULT_CORS_ORIGINS)] == list(DEFAULT_CORS_ORIGINS)
    assert "https://shop.example.com" in origins
    assert origins.count("http://localhost:3000") == 1


def test_settings_ignore_unknown_keys():
    settings = Settings(NOT_A_SETTING="x")

    assert Settings.model_config["extra"] == "ignore"
    assert not hasattr(settings, "NOT_A_SETTING")
