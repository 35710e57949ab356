from walletmatch.config import Settings


def test_defaults_match_upstream_plans(monkeypatch):
    monkeypatch.delenv("RATE_LIMIT_GLOBAL", raising=False)

    settings = Settings()

    assert settings.rate_limit_endpoint_default == 300
    assert settings.rate_limit_global == 500
    assert settings.rate_limit_endpoint_overrides == {"/frame/validate": 5000}
    assert settings.rate_limit_substring_overrides == {"/signer": 3000}
    assert settings.overlap_cache_ttl_seconds == 86400
    assert settings.suggested_follows_cache_ttl_seconds == 1800


def test_neynar_api_key_legacy_alias(monkeypatch):
    """Neynar key should load from the browser-side name when the primary is unset."""

    monkeypatch.setenv("NEYNAR_API_KEY", "")
    monkeypatch.setenv("NEXT_PUBLIC_NEYNAR_API_KEY", "alias-from-legacy")

    settings = Settings()

    assert settings.neynar_api_key == "alias-from-legacy"
    assert settings.has_neynar_key


def test_neynar_api_key_direct_env(monkeypatch):
    monkeypatch.setenv("NEYNAR_API_KEY", "primary-key")
    monkeypatch.setenv("NEXT_PUBLIC_NEYNAR_API_KEY", "alias-from-legacy")

    settings = Settings()

    assert settings.neynar_api_key == "primary-key"


def test_rate_limit_overrides_from_env(monkeypatch):
    monkeypatch.setenv("RATE_LIMIT_ENDPOINT_OVERRIDES", '{"/cast": 10}')
    monkeypatch.setenv("ZAPPER_API_KEY", "zk")

    settings = Settings()

    assert settings.rate_limit_endpoint_overrides == {"/cast": 10}
    assert settings.has_zapper_key
