import pytest

from battlesim.battle.models import Team
from battlesim.battle.service import BattleService
from battlesim.core.errors import CatalogError


@pytest.fixture
def service(catalog):
    return BattleService(catalog)


def test_quick_battle_reaches_an_outcome(service):
    result = service.quick_battle(["Chimchar", "Starly"], ["Piplup"], level=10, seed=7)
    assert result["outcome"] in {"WIN", "LOSS", "ESCAPED"}
    assert result["turns"] >= 1
    assert any(line.endswith("entered the battle!") for line in result["log"])


def test_seeded_runs_are_reproducible(service):
    first = service.quick_battle(["Turtwig"], ["Shinx"], level=15, seed=42, ai="greedy")
    second = service.quick_battle(["Turtwig"], ["Shinx"], level=15, seed=42, ai="greedy")
    assert first == second


def test_turn_cap_counts_as_an_escape(service):
    result = service.quick_battle(["Regigigas"], ["Hippopotas"], seed=1, max_turns=0)
    assert result == {"outcome": "ESCAPED", "turns": 0, "log": result["log"]}


def test_messages_are_forwarded_as_they_happen(service):
    seen = []
    turns = []
    result = service.quick_battle(["Glaceon"], ["Snover"], level=30, seed=3,
                                  message_cb=seen.append, on_turn=lambda b: turns.append(b.turn))
    assert seen == result["log"]
    assert turns == list(range(result["turns"]))


def test_build_party(service):
    party = service.build_party(["Shinx", "Drifloon"], Team.ENEMY, 12)
    assert [c.name for c in party] == ["Shinx", "Drifloon"]
    assert all(c.team is Team.ENEMY and c.level == 12 for c in party)
    with pytest.raises(CatalogError):
        service.build_party(["Nobody"], Team.ALLY, 5)
