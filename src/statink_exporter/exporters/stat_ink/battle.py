from __future__ import annotations

import asyncio
import math
from typing import Any

from statink_exporter.core.text import parse_udemae
from statink_exporter.exporters.base.errors import MappingError
from statink_exporter.splatnet.ids import b64_number, game_id
from statink_exporter.splatnet.models import (
    Color,
    PlayerGear,
    VersusSession,
    VsHistoryDetail,
    VsPlayer,
    VsPlayerResult,
    VsTeam,
)

from .client import StatInkClient
from .constants import (
    AGENT_NAME,
    AGENT_VERSION,
    BANKARA_LOBBY_MAP,
    DRAGON_MAP,
    FEST_LOBBY_MAP,
    RESULT_MAP,
    RULE_MAP,
)
from .models import BattlePostBody

Payload = dict[str, Any]


def map_color(color: Color) -> str:
    """RGBA floats in [0, 1] -> ``rrggbbaa``."""

    def channel(v: float) -> str:
        return f"{math.floor(v * 255 + 0.5):02x}"

    return "".join(channel(v) for v in (color.r, color.g, color.b, color.a))


def map_role(tricolor_role: str) -> str:
    return "defender" if tricolor_role == "DEFENSE" else "attacker"


def map_lobby(detail: VsHistoryDetail) -> str:
    vs_mode = detail.vs_mode.mode

    if vs_mode == "REGULAR":
        return "regular"
    if vs_mode == "BANKARA":
        mode = (detail.bankara_match.mode if detail.bankara_match else None) or "UNKNOWN"
        lobby = BANKARA_LOBBY_MAP.get(mode)
        if lobby:
            return lobby
    elif vs_mode == "PRIVATE":
        return "private"
    elif vs_mode == "FEST":
        lobby = FEST_LOBBY_MAP.get(b64_number(detail.vs_mode.id))
        if lobby:
            return lobby
    elif vs_mode == "X_MATCH":
        return "xmatch"

    raise MappingError(f"Unknown vsMode {vs_mode}", context={"vs_mode_id": detail.vs_mode.id})


def _set(payload: Payload, key: str, value: Any) -> None:
    # stat.ink treats a missing key as "unknown"; never send an explicit null for these.
    if value is not None:
        payload[key] = value


def _set_kda(payload: Payload, result: VsPlayerResult) -> None:
    # SplatNet's `kill` already includes assists.
    payload["kill_or_assist"] = result.kill
    payload["assist"] = result.assist
    payload["kill"] = result.kill - result.assist
    payload["death"] = result.death
    _set(payload, "signal", result.noroshi_try)
    payload["special"] = result.special


def _team_inked(team: VsTeam) -> int:
    return sum(p.paint for p in team.players)


def _team_percent(team: VsTeam) -> float:
    ratio = team.result.paint_ratio if team.result else None
    return (ratio or 0) * 100


class BattleMapper:
    """SplatNet 3 versus history detail -> stat.ink `POST /api/v3/battle` body."""

    def __init__(self, api: StatInkClient, *, upload_mode: str) -> None:
        self.api = api
        self.upload_mode = upload_mode

    async def map_stage(self, detail: VsHistoryDetail) -> str:
        stage_id = str(b64_number(detail.vs_stage.id))
        for stage in await self.api.get_stage():
            if stage_id in stage.aliases:
                return stage.key
        raise MappingError(
            f"Unknown stage: {detail.vs_stage.name}", context={"stage_id": stage_id}
        )

    async def map_gear(self, gear: PlayerGear) -> Payload:
        primary = await self.api.resolve_ability_key(gear.primary_gear_power.name)
        if primary is None:
            raise MappingError(f"Unknown ability: {gear.primary_gear_power.name}")

        # Secondary slots may hold abilities stat.ink does not list; those go up as null.
        secondary = [
            await self.api.resolve_ability_key(p.name) for p in gear.additional_gear_powers
        ]
        return {"primary_ability": primary, "secondary_abilities": secondary}

    async def map_gears(self, player: VsPlayer) -> Payload:
        return {
            "headgear": await self.map_gear(player.head_gear),
            "clothing": await self.map_gear(player.clothing_gear),
            "shoes": await self.map_gear(player.shoes_gear),
        }

    async def map_player(self, player: VsPlayer, index: int) -> Payload:
        result: Payload = {
            "me": "yes" if player.is_myself else "no",
            "rank_in_team": index + 1,
            "name": player.name,
            "weapon": str(b64_number(player.weapon.id)),
            "inked": player.paint,
            "gears": await self.map_gears(player),
            "crown": "yes" if player.crown else "no",
            "disconnected": "no" if player.result else "yes",
        }
        _set(result, "number", player.name_id)
        _set(result, "splashtag_title", player.byname)
        if player.result:
            _set_kda(result, player.result)
        return result

    async def map_players(self, team: VsTeam) -> list[Payload]:
        return list(
            await asyncio.gather(*(self.map_player(p, i) for i, p in enumerate(team.players)))
        )

    async def map(self, session: VersusSession) -> BattlePostBody:
        # Undecodable ids and bodies the post schema rejects (ValidationError is a ValueError).
        try:
            return await self._map_session(session)
        except ValueError as e:
            raise MappingError(
                f"Malformed versus session: {e}", context={"id": session.detail.id}
            ) from e

    async def _map_session(self, session: VersusSession) -> BattlePostBody:
        detail = session.detail
        my_team = detail.my_team
        other_teams = detail.other_teams

        me = next((p for p in my_team.players if p.is_myself), None)
        if me is None:
            raise MappingError("Self not found", context={"id": detail.id})
        if not other_teams:
            raise MappingError("Other teams is empty", context={"id": detail.id})

        rule = RULE_MAP.get(detail.vs_rule.rule)
        if rule is None:
            raise MappingError(f"Unknown rule {detail.vs_rule.rule}")
        judgement = RESULT_MAP.get(detail.judgement)
        if judgement is None:
            raise MappingError(f"Unknown judgement {detail.judgement}")

        started_at = int(detail.played_time.timestamp())

        payload: Payload = {
            "uuid": game_id(detail.id),
            "lobby": map_lobby(detail),
            "rule": rule,
            "stage": await self.map_stage(detail),
            "result": judgement,
            "weapon": str(b64_number(me.weapon.id)),
            "inked": me.paint,
            "rank_in_team": my_team.players.index(me) + 1,
            "medals": [a.name for a in detail.awards],
            "our_team_players": await self.map_players(my_team),
            "their_team_players": await self.map_players(other_teams[0]),
            "agent": AGENT_NAME,
            "agent_version": AGENT_VERSION,
            "agent_variables": {"Upload Mode": self.upload_mode},
            "automated": "yes",
            "start_at": started_at,
            "end_at": started_at + detail.duration,
        }
        if me.result:
            _set_kda(payload, me.result)

        payload["our_team_color"] = map_color(my_team.color)
        payload["their_team_color"] = map_color(other_teams[0].color)
        if len(other_teams) == 2:
            payload["third_team_color"] = map_color(other_teams[1].color)

        if detail.fest_match:
            _set(payload, "fest_dragon", DRAGON_MAP.get(detail.fest_match.dragon_match_type))
            _set(payload, "clout_change", detail.fest_match.contribution)
            _set(payload, "fest_power", detail.fest_match.my_fest_power)

        if detail.vs_rule.rule in ("TURF_WAR", "TRI_COLOR"):
            await self._map_paint(payload, my_team, other_teams)

        if detail.knockout:
            payload["knockout"] = "no" if detail.knockout == "NEITHER" else "yes"

        _set(payload, "our_team_count", my_team.result.score if my_team.result else None)
        their_result = other_teams[0].result
        _set(payload, "their_team_count", their_result.score if their_result else None)

        self._map_rank(payload, session)
        self._map_x_power(payload, session)

        return BattlePostBody.model_validate(payload)

    async def _map_paint(
        self, payload: Payload, my_team: VsTeam, other_teams: list[VsTeam]
    ) -> None:
        their_team = other_teams[0]

        payload["our_team_percent"] = _team_percent(my_team)
        payload["their_team_percent"] = _team_percent(their_team)
        payload["our_team_inked"] = _team_inked(my_team)
        payload["their_team_inked"] = _team_inked(their_team)

        _set(payload, "our_team_theme", my_team.fest_team_name)
        _set(payload, "their_team_theme", their_team.fest_team_name)
        if my_team.tricolor_role:
            payload["our_team_role"] = map_role(my_team.tricolor_role)
        if their_team.tricolor_role:
            payload["their_team_role"] = map_role(their_team.tricolor_role)

        if len(other_teams) == 2:
            third_team = other_teams[1]
            payload["third_team_players"] = await self.map_players(third_team)
            payload["third_team_percent"] = _team_percent(third_team)
            payload["third_team_inked"] = _team_inked(third_team)
            _set(payload, "third_team_theme", third_team.fest_team_name)
            if third_team.tricolor_role:
                payload["third_team_role"] = map_role(third_team.tricolor_role)

    def _map_rank(self, payload: Payload, session: VersusSession) -> None:
        detail = session.detail
        challenge = session.bankara_match_challenge
        progress = session.challenge_progress

        if detail.bankara_match:
            _set(payload, "rank_exp_change", detail.bankara_match.earned_udemae_point)

        if session.list_node and session.list_node.udemae:
            rank, s_plus = parse_udemae(session.list_node.udemae)
            payload["rank_before"] = rank
            _set(payload, "rank_before_s_plus", s_plus)

        if challenge and progress:
            payload["rank_up_battle"] = "yes" if challenge.is_promo else "no"

            if progress.index == 0 and challenge.udemae_after:
                rank, s_plus = parse_udemae(challenge.udemae_after)
                payload["rank_after"] = rank
                _set(payload, "rank_after_s_plus", s_plus)
                payload.pop("rank_exp_change", None)
                _set(payload, "rank_exp_change", challenge.earned_udemae_point)
            else:
                _set(payload, "rank_after", payload.get("rank_before"))
                _set(payload, "rank_after_s_plus", payload.get("rank_before_s_plus"))

        if progress:
            payload["challenge_win"] = progress.win_count
            payload["challenge_lose"] = progress.lose_count

        before_state = session.rank_before_state
        after_state = session.rank_state
        if before_state and after_state:
            payload["rank_before_exp"] = before_state.rank_point
            payload["rank_after_exp"] = after_state.rank_point

            # SplatNet reports no point change for series battles; promotion battles
            # are not a plain difference, so those stay unset.
            promoted = challenge.is_udemae_up if challenge else None
            if not promoted and "rank_exp_change" not in payload:
                payload["rank_exp_change"] = after_state.rank_point - before_state.rank_point

            if not payload.get("rank_after"):
                rank, s_plus = parse_udemae(after_state.rank)
                payload["rank_after"] = rank
                _set(payload, "rank_after_s_plus", s_plus)

    def _map_x_power(self, payload: Payload, session: VersusSession) -> None:
        x_match = session.detail.x_match
        if not x_match:
            return

        _set(payload, "x_power_before", x_match.last_x_power)
        _set(payload, "x_power_after", x_match.last_x_power)

        measurement = session.group_info.x_match_measurement if session.group_info else None
        progress = session.challenge_progress
        if (
            measurement
            and measurement.state == "COMPLETED"
            and progress
            and progress.index == 0
        ):
            _set(payload, "x_power_after", measurement.x_power_after)
