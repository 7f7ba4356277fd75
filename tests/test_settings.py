from market_console.settings import Settings


def test_blank_secrets_become_none(monkeypatch):
    monkeypatch.setenv("ADMIN_TOKEN", "  ")
    monkeypatch.setenv("WALLET_PRIVATE_KEY", "null")

    settings = Settings(_env_file=None)

    assert settings.ADMIN_TOKEN is None
    assert settings.WALLET_PRIVATE_KEY is None


def test_backend_url_trailing_slash_is_stripped(monkeypatch):
    monkeypatch.setenv("BACKEND_BASE_URL", "https://console.example.com/api/")

    assert Settings(_env_file=None).BACKEND_BASE_URL == "https://console.example.com/api"


def test_defaults(monkeypatch):
    for name in ("MARKET_TIMEZONE", "NAVIGATE_DELAY_SECONDS", "DEFAULT_CHAIN_ID", "MARKETS_LIST_PATH"):
        monkeypatch.delenv(name, raising=False)

    settings = Settings(_env_file=None)

    assert settings.MARKET_TIMEZONE == "UTC"
    assert settings.NAVIGATE_DELAY_SECONDS == 2.0
    assert settings.DEFAULT_CHAIN_ID == 97
    assert settings.MARKETS_LIST_PATH == "/markets"
