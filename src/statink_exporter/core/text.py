from __future__ import annotations

import re

# SplatNet writes `14式竹筒槍‧甲`, stat.ink writes `14式竹筒槍·甲`.
STAT_INK_DOT = "·"
SPLATNET_DOT = "‧"

_rank_re = re.compile(r"([0-9]+)")


def name_aliases(name: str) -> list[str]:
    """All spellings under which a stat.ink display name may show up in SplatNet."""

    if STAT_INK_DOT in name:
        return [name, name.replace(STAT_INK_DOT, SPLATNET_DOT)]
    return [name]


def parse_udemae(udemae: str) -> tuple[str, int | None]:
    """Split a ladder label into rank code and S+ sub-rank: ``S+12`` -> ``("s+", 12)``."""

    parts = _rank_re.split(udemae)
    rank = parts[0].lower()
    sub_rank = int(parts[1]) if len(parts) > 1 else None
    return rank, sub_rank
