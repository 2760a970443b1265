from __future__ import annotations

import pytest

from statink_exporter.core.config import Settings
from statink_exporter.core.text import SPLATNET_DOT, name_aliases, parse_udemae
from statink_exporter.exporters.base.errors import ConfigurationError


def test_name_aliases_adds_splatnet_dot_spelling() -> None:
    assert name_aliases("14式竹筒槍·甲") == ["14式竹筒槍·甲", f"14式竹筒槍{SPLATNET_DOT}甲"]
    assert name_aliases("Splattershot") == ["Splattershot"]


@pytest.mark.parametrize(
    ("label", "expected"),
    [
        ("S+12", ("s+", 12)),
        ("S+0", ("s+", 0)),
        ("A-", ("a-", None)),
        ("C", ("c", None)),
    ],
)
def test_parse_udemae(label: str, expected: tuple[str, int | None]) -> None:
    assert parse_udemae(label) == expected


def test_settings_require_api_key() -> None:
    cfg = Settings(_env_file=None, stat_ink_api_key=None)
    with pytest.raises(ConfigurationError):
        cfg.require_stat_ink_api_key()

    cfg = Settings(_env_file=None, stat_ink_api_key="k" * 43)
    assert cfg.require_stat_ink_api_key() == "k" * 43


def test_settings_hide_api_key_from_repr() -> None:
    cfg = Settings(_env_file=None, stat_ink_api_key="secret" * 7 + "x")
    assert "secret" not in repr(cfg)
