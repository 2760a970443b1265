from __future__ import annotations

import asyncio
from typing import Any

import msgpack
import pytest

from factories import VS_DETAIL_ID, FakeStatInk, b64, versus_raw
from statink_exporter.exporters.base.errors import MappingError
from statink_exporter.exporters.stat_ink.battle import BattleMapper, map_color, map_lobby
from statink_exporter.exporters.stat_ink.exporter import StatInkExporter
from statink_exporter.splatnet.ids import game_id
from statink_exporter.splatnet.models import Color, parse_session

PLAYED_AT = 1666701296


def _map(raw: dict[str, Any], fake: FakeStatInk | None = None) -> dict[str, Any]:
    mapper = BattleMapper((fake or FakeStatInk()).client(), upload_mode="Manual")
    body = asyncio.run(mapper.map(parse_session(raw)))
    return body.to_wire()


@pytest.mark.parametrize(
    ("rgba", "expected"),
    [
        ((1.0, 0.5, 0.0, 1.0), "ff8000ff"),
        ((0.0, 0.0, 1.0, 1.0), "0000ffff"),
        ((0.2, 0.4, 0.6, 0.8), "336699cc"),
        ((0.0, 0.0, 0.0, 0.0), "00000000"),
    ],
)
def test_map_color(rgba: tuple[float, float, float, float], expected: str) -> None:
    r, g, b, a = rgba
    assert map_color(Color(r=r, g=g, b=b, a=a)) == expected


def test_map_color_round_trips_within_one_step() -> None:
    for step in range(0, 101):
        v = step / 100
        hex_ = map_color(Color(r=v, g=v, b=v, a=v))
        assert len(hex_) == 8
        for i in range(0, 8, 2):
            assert abs(int(hex_[i : i + 2], 16) / 255 - v) <= 1 / 255


@pytest.mark.parametrize(
    ("mode", "mode_id", "bankara", "expected"),
    [
        ("REGULAR", 1, None, "regular"),
        ("BANKARA", 2, {"mode": "OPEN"}, "bankara_open"),
        ("BANKARA", 2, {"mode": "CHALLENGE"}, "bankara_challenge"),
        ("PRIVATE", 5, None, "private"),
        ("FEST", 6, None, "splatfest_open"),
        ("FEST", 7, None, "splatfest_challenge"),
        ("FEST", 8, None, "splatfest_open"),
        ("X_MATCH", 3, None, "xmatch"),
    ],
)
def test_map_lobby(mode: str, mode_id: int, bankara: dict | None, expected: str) -> None:
    raw = versus_raw(mode=mode, mode_id=mode_id, bankaraMatch=bankara)
    assert map_lobby(parse_session(raw).detail) == expected


@pytest.mark.parametrize(
    ("mode", "mode_id", "bankara"),
    [
        ("BANKARA", 2, None),
        ("BANKARA", 2, {"mode": None}),
        ("FEST", 9, None),
        ("LEAGUE", 10, None),
    ],
)
def test_map_lobby_rejects_unknown_combinations(
    mode: str, mode_id: int, bankara: dict | None
) -> None:
    raw = versus_raw(mode=mode, mode_id=mode_id, bankaraMatch=bankara)
    with pytest.raises(MappingError):
        map_lobby(parse_session(raw).detail)


def test_turf_war_body() -> None:
    body = _map(versus_raw())

    assert body["uuid"] == game_id(VS_DETAIL_ID)
    assert body["lobby"] == "regular"
    assert body["rule"] == "nawabari"
    assert body["stage"] == "yunohana"
    assert body["result"] == "win"
    assert body["weapon"] == "40"
    assert body["rank_in_team"] == 1
    assert body["medals"] == ["#1 Turf Inker"]
    assert body["start_at"] == PLAYED_AT
    assert body["end_at"] == PLAYED_AT + 180
    assert body["agent_variables"] == {"Upload Mode": "Manual"}
    assert body["automated"] == "yes"

    assert body["our_team_color"] == "ff8000ff"
    assert body["their_team_color"] == "0000ffff"
    assert body["our_team_percent"] == 50.0
    assert body["our_team_inked"] == 2000
    assert body["their_team_inked"] == 2000


def test_kill_excludes_assists() -> None:
    body = _map(versus_raw())

    assert body["kill_or_assist"] == 7
    assert body["assist"] == 3
    assert body["kill"] == 4
    assert body["death"] == 3
    assert "signal" not in body

    me = body["our_team_players"][0]
    assert me["me"] == "yes"
    assert (me["kill_or_assist"], me["kill"]) == (7, 4)


def test_player_without_result_is_disconnected() -> None:
    raw = versus_raw()
    raw["detail"]["myTeam"]["players"][1]["result"] = None

    ally = _map(raw)["our_team_players"][1]

    assert ally["disconnected"] == "yes"
    assert "kill" not in ally
    assert ally["rank_in_team"] == 2


def test_gears_resolve_abilities() -> None:
    fake = FakeStatInk()
    gears = _map(versus_raw(), fake)["our_team_players"][0]["gears"]

    assert gears["headgear"] == {
        "primary_ability": "ink_saver_main",
        "secondary_abilities": ["run_speed_up"],
    }
    assert gears["shoes"] == {"primary_ability": "comeback", "secondary_abilities": []}
    assert len(fake.gets("/api/v3/ability")) == 1


def test_unknown_secondary_ability_becomes_null() -> None:
    raw = versus_raw()
    raw["detail"]["myTeam"]["players"][0]["headGear"]["additionalGearPowers"] = [
        {"name": "Run Speed Up"},
        {"name": "Not Yet Listed"},
    ]

    gears = _map(raw)["our_team_players"][0]["gears"]

    assert gears["headgear"]["secondary_abilities"] == ["run_speed_up", None]


def test_unknown_primary_ability_is_fatal() -> None:
    raw = versus_raw()
    raw["detail"]["myTeam"]["players"][0]["shoesGear"]["primaryGearPower"] = {
        "name": "Not Yet Listed"
    }

    with pytest.raises(MappingError, match="Unknown ability"):
        _map(raw)


def test_one_opposing_team_never_sets_third_team_fields() -> None:
    body = _map(versus_raw(other_teams=1))

    assert not [k for k in body if k.startswith("third_team_")]


def test_two_opposing_teams_set_third_team_fields() -> None:
    raw = versus_raw(mode="FEST", mode_id=8, rule="TRI_COLOR", other_teams=2)
    detail = raw["detail"]
    detail["myTeam"]["tricolorRole"] = "DEFENSE"
    detail["otherTeams"][0]["tricolorRole"] = "ATTACK1"
    detail["otherTeams"][1]["tricolorRole"] = "ATTACK2"
    detail["otherTeams"][1]["festTeamName"] = "Power"

    body = _map(raw)

    assert body["lobby"] == "splatfest_open"
    assert body["rule"] == "tricolor"
    assert body["third_team_color"] == "0000ffff"
    assert len(body["third_team_players"]) == 2
    assert body["third_team_inked"] == 2000
    assert body["third_team_percent"] == 50.0
    assert body["third_team_theme"] == "Power"
    assert body["our_team_role"] == "defender"
    assert body["their_team_role"] == "attacker"
    assert body["third_team_role"] == "attacker"


def test_non_paint_rule_skips_paint_fields() -> None:
    body = _map(versus_raw(rule="AREA", knockout="WIN"))

    assert body["rule"] == "area"
    assert body["knockout"] == "yes"
    assert "our_team_percent" not in body
    assert "our_team_inked" not in body


def test_fest_fields() -> None:
    raw = versus_raw(
        mode="FEST",
        mode_id=7,
        festMatch={"dragonMatchType": "DECUPLE", "contribution": 30, "myFestPower": 1500.5},
    )
    raw["detail"]["myTeam"]["festTeamName"] = "Grass"

    body = _map(raw)

    assert body["lobby"] == "splatfest_challenge"
    assert body["fest_dragon"] == "10x"
    assert body["clout_change"] == 30
    assert body["fest_power"] == 1500.5
    assert body["our_team_theme"] == "Grass"


def test_normal_fest_battle_has_no_dragon() -> None:
    body = _map(versus_raw(mode="FEST", mode_id=6, festMatch={"dragonMatchType": "NORMAL"}))

    assert "fest_dragon" not in body


def test_rank_points_from_before_and_after_state() -> None:
    raw = versus_raw(
        mode="BANKARA", mode_id=2, rule="AREA", bankaraMatch={"mode": "OPEN"}
    )
    raw["listNode"] = {"udemae": "A-"}
    raw["rankBeforeState"] = {"rank": "A-", "rankPoint": 100}
    raw["rankState"] = {"rank": "A-", "rankPoint": 108}

    body = _map(raw)

    assert body["rank_before"] == "a-"
    assert "rank_before_s_plus" not in body
    assert body["rank_before_exp"] == 100
    assert body["rank_after_exp"] == 108
    assert body["rank_exp_change"] == 8
    assert body["rank_after"] == "a-"


def test_server_reported_rank_point_change_wins() -> None:
    raw = versus_raw(
        mode="BANKARA",
        mode_id=2,
        rule="AREA",
        bankaraMatch={"mode": "OPEN", "earnedUdemaePoint": -5},
    )
    raw["rankBeforeState"] = {"rank": "A-", "rankPoint": 100}
    raw["rankState"] = {"rank": "A-", "rankPoint": 108}

    assert _map(raw)["rank_exp_change"] == -5


def test_rank_after_from_first_challenge_battle() -> None:
    raw = versus_raw(
        mode="BANKARA", mode_id=2, rule="GOAL", bankaraMatch={"mode": "CHALLENGE"}
    )
    raw["listNode"] = {"udemae": "S+12"}
    raw["bankaraMatchChallenge"] = {
        "winCount": 5,
        "loseCount": 1,
        "isPromo": True,
        "isUdemaeUp": True,
        "udemaeAfter": "S+13",
        "earnedUdemaePoint": 200,
    }
    raw["challengeProgress"] = {"index": 0, "winCount": 5, "loseCount": 1}
    raw["rankBeforeState"] = {"rank": "S+12", "rankPoint": 900}
    raw["rankState"] = {"rank": "S+13", "rankPoint": 0}

    body = _map(raw)

    assert body["lobby"] == "bankara_challenge"
    assert (body["rank_before"], body["rank_before_s_plus"]) == ("s+", 12)
    assert (body["rank_after"], body["rank_after_s_plus"]) == ("s+", 13)
    assert body["rank_exp_change"] == 200
    assert body["rank_up_battle"] == "yes"
    assert (body["challenge_win"], body["challenge_lose"]) == (5, 1)


def test_rank_after_mirrors_before_mid_series() -> None:
    raw = versus_raw(
        mode="BANKARA", mode_id=2, rule="CLAM", bankaraMatch={"mode": "CHALLENGE"}
    )
    raw["listNode"] = {"udemae": "B+"}
    raw["bankaraMatchChallenge"] = {"winCount": 2, "loseCount": 1, "udemaeAfter": "A-"}
    raw["challengeProgress"] = {"index": 2, "winCount": 2, "loseCount": 1}

    body = _map(raw)

    assert body["rank_after"] == "b+"
    assert body["rank_up_battle"] == "no"


def test_promotion_battle_has_no_computed_point_change() -> None:
    raw = versus_raw(
        mode="BANKARA", mode_id=2, rule="LOFT", bankaraMatch={"mode": "CHALLENGE"}
    )
    raw["bankaraMatchChallenge"] = {"isPromo": True, "isUdemaeUp": True}
    raw["challengeProgress"] = {"index": 3, "winCount": 3, "loseCount": 0}
    raw["rankBeforeState"] = {"rank": "B+", "rankPoint": 600}
    raw["rankState"] = {"rank": "A-", "rankPoint": 0}

    body = _map(raw)

    assert "rank_exp_change" not in body
    assert body["rank_after"] == "a-"


def test_x_power_after_completed_measurement() -> None:
    raw = versus_raw(mode="X_MATCH", mode_id=3, rule="AREA", xMatch={"lastXPower": 2000.5})
    raw["groupInfo"] = {"xMatchMeasurement": {"state": "COMPLETED", "xPowerAfter": 2100.0}}
    raw["challengeProgress"] = {"index": 0, "winCount": 3, "loseCount": 2}

    body = _map(raw)

    assert body["lobby"] == "xmatch"
    assert body["x_power_before"] == 2000.5
    assert body["x_power_after"] == 2100.0


def test_x_power_unchanged_while_measuring() -> None:
    raw = versus_raw(mode="X_MATCH", mode_id=3, rule="AREA", xMatch={"lastXPower": 2000.5})
    raw["groupInfo"] = {"xMatchMeasurement": {"state": "INPROGRESS", "xPowerAfter": None}}
    raw["challengeProgress"] = {"index": 2, "winCount": 1, "loseCount": 1}

    body = _map(raw)

    assert body["x_power_before"] == body["x_power_after"] == 2000.5


def test_self_not_found() -> None:
    raw = versus_raw()
    raw["detail"]["myTeam"]["players"][0]["isMyself"] = False

    with pytest.raises(MappingError, match="Self not found"):
        _map(raw)


def test_no_opposing_team() -> None:
    with pytest.raises(MappingError, match="Other teams is empty"):
        _map(versus_raw(other_teams=0))


def test_unknown_stage_raises_without_posting() -> None:
    fake = FakeStatInk()
    exporter = StatInkExporter(api=fake.client(), upload_mode="Manual")

    with pytest.raises(MappingError, match="Unknown stage"):
        asyncio.run(exporter.export_game(parse_session(versus_raw(stage_id=99))))

    assert fake.posts() == []


def test_mapping_is_idempotent() -> None:
    fake = FakeStatInk()
    mapper = BattleMapper(fake.client(), upload_mode="Manual")
    session = parse_session(versus_raw(mode="FEST", mode_id=8, rule="TRI_COLOR", other_teams=2))

    async def run() -> tuple[bytes, bytes]:
        first = await mapper.map(session)
        second = await mapper.map(session)
        return msgpack.packb(first.to_wire()), msgpack.packb(second.to_wire())

    first, second = asyncio.run(run())
    assert first == second


def test_undecodable_id_is_a_mapping_error() -> None:
    raw = versus_raw()
    raw["detail"]["vsStage"]["id"] = b64("VsStage")

    with pytest.raises(MappingError, match="Malformed versus session"):
        _map(raw)
