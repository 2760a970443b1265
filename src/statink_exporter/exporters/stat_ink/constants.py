from __future__ import annotations

AGENT_NAME = "splat-statink"
AGENT_VERSION = "0.1.0"
USER_AGENT = f"{AGENT_NAME}/{AGENT_VERSION}"

STAT_INK_API_KEY_LENGTH = 43

RULE_MAP: dict[str, str] = {
    "TURF_WAR": "nawabari",
    "AREA": "area",
    "LOFT": "yagura",
    "GOAL": "hoko",
    "CLAM": "asari",
    "TRI_COLOR": "tricolor",
}

RESULT_MAP: dict[str, str] = {
    "WIN": "win",
    "LOSE": "lose",
    "DEEMED_LOSE": "lose",
    "EXEMPTED_LOSE": "exempted_lose",
    "DRAW": "draw",
}

# NORMAL has no stat.ink value; the field is left out.
DRAGON_MAP: dict[str, str | None] = {
    "NORMAL": None,
    "DECUPLE": "10x",
    "DRAGON": "100x",
    "DOUBLE_DRAGON": "333x",
}

# Fest vs-mode ids (decoded). 8 is the tricolor battle, which stat.ink files under "open".
FEST_LOBBY_MAP: dict[int, str] = {
    6: "splatfest_open",
    7: "splatfest_challenge",
    8: "splatfest_open",
}

BANKARA_LOBBY_MAP: dict[str, str] = {
    "OPEN": "bankara_open",
    "CHALLENGE": "bankara_challenge",
}

COOP_EVENT_MAP: dict[int, str] = {
    1: "rush",
    2: "goldie_seeking",
    3: "the_griller",
    4: "the_mothership",
    5: "fog",
    6: "cohock_charge",
    7: "giant_tornado",
    8: "mudmouth_eruption",
}

WATER_LEVEL_MAP: dict[int, str] = {
    0: "low",
    1: "normal",
    2: "high",
}

# Keyed by the hash segment of the special's icon file name (`/<hash>_0.png`).
COOP_SPECIAL_MAP: dict[str, str] = {
    "bd327d1b64372dedefd32adb28bea62a5b6152d93aada5d9fc4f669a1955d6d4": "nicedama",
    "463eedc60013608666b260c79ac8c352f9795c3d0cce074d3fbbdbd2c054a56d": "hopsonar",
    "fa8d49e8c850ee69f0231976208a913384e73dc0a39e6fb00806f6aa3da8a1ee": "megaphone51",
    "252059408283fbcb69ca9c18b98effd3b8653ab73b7349c42472281e5a1c38f9": "jetpack",
    "680379f8b83e5f9e033b828360827bc2f0e08c34df1abcc23de3d059fe2ac435": "kanitank",
    "380e541b5bc5e49d77ff1a616f1343aeba01d500fee36aaddf8f09d74bd3d3bc": "tripletornado",
}

# Question-mark icon shown for weapons/specials that have not been revealed yet.
RANDOM_ICON_HASH = "473fffb2442075078d8bb7125744905abdeae651b6a5b7453ae295582e45f7d1"

UNSPECIFIED = "unspecified"

COOP_POINT_MAP: dict[int, int] = {
    0: -20,
    1: -10,
    2: 0,
    3: 20,
}
COOP_TITLE_EXP_MAX = 999
COOP_LOWEST_GRADE = "0"
