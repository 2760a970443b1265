from __future__ import annotations

import base64
import uuid

# stat.ink identifiers are uuid5 values; sibling uploaders used different
# namespaces/slices over time, so all of them count as "already uploaded".
BATTLE_NAMESPACE = uuid.UUID("b3a2dbf5-2c09-4792-b78c-00b548b70aeb")
COOP_NAMESPACE = uuid.UUID("f1911910-605e-11ed-a622-7085c2057a9d")
S3SI_NAMESPACE = uuid.UUID("63941e1c-e32e-4b56-9a1d-f6fbe19ef6e1")

# "<YYYYMMDD>T<HHMMSS>_<uuid>"
_TS_UUID_LEN = 52

_VS_PREFIX = "VsHistoryDetail-"
_COOP_PREFIX = "CoopHistoryDetail-"


def b64_decode(value: str) -> str:
    return base64.b64decode(value).decode("utf-8")


def b64_number(value: str) -> int:
    """Numeric part of an opaque id, e.g. ``VnNTdGFnZS0xMg==`` (``VsStage-12``) -> 12."""
    text = b64_decode(value)
    _, sep, num = text.rpartition("-")
    if not sep:
        raise ValueError(f"Not a numbered id: {text!r}")
    return int(num)


def _ts_uuid(full_id: str) -> str:
    return full_id[-_TS_UUID_LEN:]


def game_id(value: str) -> str:
    """Current stat.ink identifier for a SplatNet history detail id."""
    full_id = b64_decode(value)
    if full_id.startswith(_VS_PREFIX):
        return str(uuid.uuid5(BATTLE_NAMESPACE, _ts_uuid(full_id)))
    if full_id.startswith(_COOP_PREFIX):
        return str(uuid.uuid5(COOP_NAMESPACE, full_id))
    raise ValueError(f"Unknown history detail id: {full_id!r}")


def s3si_game_id(value: str) -> str:
    full_id = b64_decode(value)
    return str(uuid.uuid5(S3SI_NAMESPACE, _ts_uuid(full_id)))


def s3s_coop_game_id(value: str) -> str:
    """Scheme s3s used for jobs before it switched to hashing the full id."""
    full_id = b64_decode(value)
    return str(uuid.uuid5(COOP_NAMESPACE, _ts_uuid(full_id)))


def candidate_ids(value: str) -> tuple[str, str, str]:
    return game_id(value), s3si_game_id(value), s3s_coop_game_id(value)
