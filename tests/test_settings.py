from __future__ import annotations

import pytest
from pydantic import SecretStr, ValidationError

from locfav_db.errors import ConfigMissing
from locfav_db.maps import SearchLinkProvider, provider_from_settings
from locfav_db.models import Record
from locfav_db.settings import Settings, require_map_api_key


def _settings(**kwargs) -> Settings:
    return Settings(_env_file=None, **kwargs)


def test_defaults():
    s = _settings()
    assert s.LOCFAV_TABLES == ["locations"]
    assert s.LOCFAV_DEFAULT_TABLE == "locations"
    assert s.LOCFAV_MAP_API_KEY is None


def test_tables_from_comma_separated_env(monkeypatch):
    monkeypatch.setenv("LOCFAV_TABLES", "locations, cafes ,parks")
    s = _settings()
    assert s.LOCFAV_TABLES == ["locations", "cafes", "parks"]
    assert s.LOCFAV_DEFAULT_TABLE == "locations"


def test_duplicate_tables_are_collapsed():
    assert _settings(LOCFAV_TABLES=["a", "b", "a"]).LOCFAV_TABLES == ["a", "b"]


@pytest.mark.parametrize("bad", [[], ["drop table x"], ["favorites"], ["position_seq"], ["1abc"], ["sqlite_stat1"]])
def test_bad_allow_list_is_rejected(bad):
    with pytest.raises(ValidationError):
        _settings(LOCFAV_TABLES=bad)


def test_default_table_must_be_allow_listed():
    with pytest.raises(ValidationError):
        _settings(LOCFAV_TABLES=["locations"], LOCFAV_DEFAULT_TABLE="cafes")
    s = _settings(LOCFAV_TABLES=["locations", "cafes"], LOCFAV_DEFAULT_TABLE="cafes")
    assert s.LOCFAV_DEFAULT_TABLE == "cafes"


def test_missing_map_key_is_config_missing():
    with pytest.raises(ConfigMissing) as exc:
        require_map_api_key(_settings())
    assert exc.value.setting == "LOCFAV_MAP_API_KEY"

    with pytest.raises(ConfigMissing):
        provider_from_settings(_settings(LOCFAV_MAP_API_KEY="   "))


def test_map_key_is_secret_and_not_in_links():
    s = _settings(LOCFAV_MAP_API_KEY="k-123")
    assert "k-123" not in repr(s)

    provider = provider_from_settings(s)
    assert isinstance(provider, SearchLinkProvider)
    assert provider.api_key == SecretStr("k-123")

    link = provider.link_for(Record(0, "Cafe", "555-0100", "1 Main St"))
    assert link.startswith("https://www.google.com/maps/search/?")
    assert "Cafe%2C+1+Main+St" in link
    assert "k-123" not in link
