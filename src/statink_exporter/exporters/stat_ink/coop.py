from __future__ import annotations

import asyncio
import logging
import re
from collections import Counter
from collections.abc import Sequence
from typing import Any

from statink_exporter.exporters.base.errors import MappingError
from statink_exporter.splatnet.ids import b64_number, game_id
from statink_exporter.splatnet.models import (
    CoopHistoryDetail,
    CoopPlayerResult,
    CoopSession,
    CoopWaveResult,
    Image,
    NameWithImage,
)

from .client import StatInkClient
from .constants import (
    AGENT_NAME,
    AGENT_VERSION,
    COOP_EVENT_MAP,
    COOP_LOWEST_GRADE,
    COOP_POINT_MAP,
    COOP_SPECIAL_MAP,
    COOP_TITLE_EXP_MAX,
    RANDOM_ICON_HASH,
    UNSPECIFIED,
    WATER_LEVEL_MAP,
)
from .models import CoopPostBody

logger = logging.getLogger(__name__)

Payload = dict[str, Any]

TEAM_CONTEST = "TEAM_CONTEST"
BASE_WAVE_DANGER_RATE = 60

_icon_hash_re = re.compile(r"/(\w+)_0\.\w+")


def max_waves_for(rule: str) -> int:
    return 5 if rule == TEAM_CONTEST else 3


def count_clear_waves(waves: Sequence[CoopWaveResult], result_wave: int, max_waves: int) -> int:
    """
    Normal waves cleared.

    `result_wave` is the wave the team failed on, or 0 when every normal wave was
    cleared. The extra (king) wave is numbered past `max_waves` and never counts.
    """
    if not waves:
        return 0
    played = sum(1 for w in waves if w.wave_number <= max_waves)
    if result_wave == 0:
        return played
    return min(result_wave - 1, played)


def fail_reason_for(waves: Sequence[CoopWaveResult], clear_waves: int, max_waves: int) -> str | None:
    if clear_waves == max_waves or not waves:
        return None
    last = waves[-1]
    if (
        last.team_deliver_count is not None
        and last.deliver_norm is not None
        and last.team_deliver_count >= last.deliver_norm
    ):
        # Quota was met, so the team must have been wiped out.
        return "wipe_out"
    return None


def infer_title_before(
    title_after: str | None,
    title_exp_after: int | None,
    clear_waves: int,
) -> tuple[str | None, int | None]:
    """
    Reconstruct the pre-job title/points from the post-job snapshot.

    Rules are evaluated in order; each one assumes the earlier ones did not match.
    """
    exp_diff = COOP_POINT_MAP.get(clear_waves)
    if title_after is None or title_exp_after is None or exp_diff is None:
        return None, None

    # 980/990 -> 999: only the points moved.
    if title_exp_after == COOP_TITLE_EXP_MAX and exp_diff != 0:
        return title_after, None
    # 20 -> 40, or a promotion landing on 40.
    if title_exp_after == 40 and exp_diff == 20:
        return title_after, None
    # 60/50 -> 40 within the same title.
    if title_exp_after == 40 and exp_diff < 0 and title_after != COOP_LOWEST_GRADE:
        return title_after, title_exp_after - exp_diff

    if title_exp_after - exp_diff >= 0:
        return title_after, title_exp_after - exp_diff
    return str(int(title_after) - 1), None


def danger_rate_increment(num_players: int, quota: int | None, delivered: int | None) -> int:
    """Hazard added after a wave, from how far the delivery beat the quota."""
    if quota is None or delivered is None:
        return 0

    added_percent = 0
    if num_players == 4:
        if delivered >= quota * 2:
            added_percent = 60
        elif delivered >= quota * 1.5:
            added_percent = 30
    elif num_players == 3:
        if delivered >= quota * 2:
            added_percent = 40
        elif delivered >= quota * 1.5:
            added_percent = 20
    elif num_players == 2:
        if delivered >= quota * 2:
            added_percent = 20
        elif delivered >= quota * 1.5:
            # TODO: s3s publishes +10 here; confirm with stat.ink before dropping the +5 override.
            added_percent = 10
            added_percent = 5
    elif num_players == 1:
        if delivered >= quota * 2:
            added_percent = 10
        elif delivered >= quota * 1.5:
            added_percent = 5
    return added_percent


def wave_danger_rates(waves: Sequence[Payload], num_players: int) -> list[int]:
    """Per-wave hazard for Eggstra Work, which SplatNet does not report."""
    rates: list[int] = []
    prev: Payload | None = None
    for wave in waves:
        if prev is None:
            rates.append(BASE_WAVE_DANGER_RATE)
        else:
            added = danger_rate_increment(
                num_players, prev.get("golden_quota"), prev.get("golden_delivered")
            )
            rates.append(rates[-1] + added)
        prev = wave
    return rates


def is_random(image: Image | None) -> bool:
    if image is None:
        return False
    return RANDOM_ICON_HASH in image.path


def map_special(special: NameWithImage) -> str:
    path = special.image.path if special.image else ""
    match = _icon_hash_re.search(path)
    key = COOP_SPECIAL_MAP.get(match.group(1) if match else "")
    if key:
        return key
    if is_random(special.image):
        return UNSPECIFIED
    raise MappingError(f"Special not found: {special.name}", context={"image": path})


def _is_private(session: CoopSession) -> bool:
    return session.group_info is not None and session.group_info.mode == "PRIVATE_CUSTOM"


def is_disconnected(result: CoopPlayerResult) -> bool:
    counters = (
        result.golden_deliver_count,
        result.deliver_count,
        result.rescue_count,
        result.rescued_count,
        result.defeat_enemy_count,
    )
    return all(v == 0 for v in counters) and result.special_weapon is None


class CoopMapper:
    """SplatNet 3 coop history detail -> stat.ink `POST /api/v3/salmon` body."""

    def __init__(self, api: StatInkClient, *, upload_mode: str) -> None:
        self.api = api
        self.upload_mode = upload_mode

    async def map_weapon(self, weapon: NameWithImage) -> str:
        key = await self.api.resolve_salmon_weapon_key(weapon.name)
        if key is not None:
            return key
        if is_random(weapon.image):
            return UNSPECIFIED
        raise MappingError(f"Weapon not found: {weapon.name}")

    async def map_player(self, is_myself: bool, result: CoopPlayerResult) -> Payload:
        player = result.player
        payload: Payload = {
            "me": "yes" if is_myself else "no",
            "name": player.name,
            "uniform": str(b64_number(player.uniform.id)),
            "weapons": [await self.map_weapon(w) for w in result.weapons],
            "golden_eggs": result.golden_deliver_count,
            "golden_assist": result.golden_assist_count,
            "power_eggs": result.deliver_count,
            "rescue": result.rescue_count,
            "rescued": result.rescued_count,
            "defeat_boss": result.defeat_enemy_count,
            "disconnected": "yes" if is_disconnected(result) else "no",
        }
        if player.name_id is not None:
            payload["number"] = player.name_id
        if player.byname is not None:
            payload["splashtag_title"] = player.byname
        if result.special_weapon is not None:
            payload["special"] = map_special(result.special_weapon)
        return payload

    def map_wave(self, wave: CoopWaveResult) -> Payload:
        uses = Counter(map_special(s) for s in wave.special_weapons)
        uses.pop(UNSPECIFIED, None)

        payload: Payload = {
            "golden_quota": wave.deliver_norm,
            "golden_appearances": wave.golden_pop_count,
            "golden_delivered": wave.team_deliver_count,
            "special_uses": dict(uses),
            "danger_rate": None,
        }
        # stat.ink treats a missing tide/event as unknown.
        tide = WATER_LEVEL_MAP.get(wave.water_level)
        if tide is None:
            logger.warning("Unknown water level %s in wave %d", wave.water_level, wave.wave_number)
        else:
            payload["tide"] = tide

        if wave.event_wave is not None:
            event_id = b64_number(wave.event_wave.id)
            event = COOP_EVENT_MAP.get(event_id)
            if event is None:
                logger.warning("Unknown event wave %s in wave %d", event_id, wave.wave_number)
            else:
                payload["event"] = event
        return payload

    async def map(self, session: CoopSession) -> CoopPostBody:
        try:
            return await self._map_session(session)
        except ValueError as e:
            raise MappingError(
                f"Malformed coop session: {e}", context={"id": session.detail.id}
            ) from e

    async def _map_session(self, session: CoopSession) -> CoopPostBody:
        detail: CoopHistoryDetail = session.detail
        waves = detail.wave_results
        team_contest = detail.rule == TEAM_CONTEST
        max_waves = max_waves_for(detail.rule)

        clear_waves = count_clear_waves(waves, detail.result_wave, max_waves)

        title_after = str(b64_number(detail.after_grade.id)) if detail.after_grade else None
        title_exp_after = detail.after_grade_point
        if session.grade_before:
            title_before: str | None = str(b64_number(session.grade_before.grade.id))
            title_exp_before: int | None = session.grade_before.grade_point
        else:
            title_before, title_exp_before = infer_title_before(
                title_after, title_exp_after, clear_waves
            )

        players = list(
            await asyncio.gather(
                self.map_player(True, detail.my_result),
                *(self.map_player(False, m) for m in detail.member_results),
            )
        )
        mapped_waves = [self.map_wave(w) for w in waves]
        if team_contest:
            for wave, rate in zip(mapped_waves, wave_danger_rates(mapped_waves, len(players))):
                wave["danger_rate"] = rate

        boss_result = detail.boss_result
        payload: Payload = {
            "uuid": game_id(detail.id),
            "private": "yes" if _is_private(session) else "no",
            "big_run": "yes" if detail.rule == "BIG_RUN" else "no",
            "eggstra_work": "yes" if team_contest else "no",
            "stage": str(b64_number(detail.coop_stage.id)),
            "danger_rate": None if team_contest else detail.danger_rate * 100,
            "clear_waves": clear_waves,
            "fail_reason": fail_reason_for(waves, clear_waves, max_waves),
            "clear_extra": "yes" if boss_result and boss_result.has_defeat_boss else "no",
            "golden_eggs": sum(w.team_deliver_count or 0 for w in waves),
            "power_eggs": detail.my_result.deliver_count
            + sum(m.deliver_count for m in detail.member_results),
            "waves": mapped_waves,
            "players": players,
            "bosses": {
                str(b64_number(e.enemy.id)): {
                    "appearances": e.pop_count,
                    "defeated": e.team_defeat_count,
                    "defeated_by_me": e.defeat_count,
                }
                for e in detail.enemy_results
            },
            "agent": AGENT_NAME,
            "agent_version": AGENT_VERSION,
            "agent_variables": {"Upload Mode": self.upload_mode},
            "automated": "yes",
            "start_at": int(detail.played_time.timestamp()),
        }

        optional: Payload = {
            "king_smell": detail.smell_meter,
            "king_salmonid": str(b64_number(boss_result.boss.id)) if boss_result else None,
            "title_before": title_before,
            "title_exp_before": title_exp_before,
            "title_after": title_after,
            "title_exp_after": title_exp_after,
            "gold_scale": detail.scale.gold if detail.scale else None,
            "silver_scale": detail.scale.silver if detail.scale else None,
            "bronze_scale": detail.scale.bronze if detail.scale else None,
            "job_point": detail.job_point,
            "job_score": detail.job_score,
            "job_rate": detail.job_rate,
            "job_bonus": detail.job_bonus,
        }
        payload.update({k: v for k, v in optional.items() if v is not None})

        return CoopPostBody.model_validate(payload)
