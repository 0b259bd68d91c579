import io

from rich.console import Console
from rich.text import Text

from battlesim.battle.engine import Outcome
from battlesim.battle.models import Status, Team, Weather
from battlesim.core.logging import Logger
from battlesim.core.types import ElementType as E, format_types, type_abbreviation
from battlesim.ui.battle import console_sink, hp_bar, move_label, render_field, render_outcome, status_badge


def _console():
    return Console(file=io.StringIO(), width=120)


def test_type_abbreviations():
    assert type_abbreviation(E.FIRE) == "FIR"
    assert type_abbreviation(E.GROUND) == "GRN"
    assert type_abbreviation(None) == "???"


def test_format_types_dual():
    assert Text.from_markup(format_types((E.FIRE, E.FLYING))).plain == "FIR/FLY"


def test_hp_bar_colours():
    assert hp_bar(60, 100).style == "green"
    assert hp_bar(30, 100).style == "yellow"
    assert hp_bar(10, 100).style == "red"
    assert len(hp_bar(0, 100).plain) == 20


def test_status_badge():
    assert status_badge(Status.NONE).plain == ""
    assert status_badge(Status.BURNED).plain == " BRN "


def test_render_field(make_combatant, make_battle):
    ally = make_combatant("Ally", types=(E.FIRE,))
    ally.status = Status.PARALYZED
    foe = make_combatant("Foe", Team.ENEMY, current=40)
    battle = make_battle([ally, make_combatant("Bench")], [foe])
    battle.weather = Weather.RAIN
    out = _console()
    render_field(battle, out)
    text = out.file.getvalue()
    assert "Ally" in text and "Foe" in text
    assert "40/100" in text
    assert "PAR" in text
    assert "Your team (1 in reserve)" in text
    assert "It is raining." in text
    assert "Turn 1" in text


def test_render_outcome_and_sink():
    out = _console()
    render_outcome(Outcome.WIN, out)
    console_sink(out)("Foe fainted! [not markup]")
    text = out.file.getvalue()
    assert "You won the battle!" in text
    assert "[not markup]" in text


def test_move_label(catalog):
    from battlesim.battle.moves import MoveInstance
    assert Text.from_markup(move_label(MoveInstance.of(catalog.move("Ember")))).plain == \
        "Ember (FIR) special PP 25/25"
    assert Text.from_markup(move_label(MoveInstance.of(catalog.move("Struggle")))).plain == \
        "Struggle (???) physical PP --"


def test_logger_threshold_and_format():
    stream = io.StringIO()
    log = Logger("WARN", stream=stream)
    log.info("Hidden")
    log.warn("Shown", turn=3, cause="move")
    text = stream.getvalue()
    assert "Hidden" not in text
    assert "[WARN] Shown turn=3 cause=move" in text
