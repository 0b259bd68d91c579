"""Command-line entry: an interactive (or fully automatic) battle session."""
from __future__ import annotations
import argparse
from typing import List, Optional, Sequence

from battlesim.battle.ai import AI_PROVIDERS
from battlesim.battle.engine import Outcome
from battlesim.battle.models import Team
from battlesim.battle.service import BattleService
from battlesim.core.errors import CatalogError, DataLoadError, ValidationError
from battlesim.core.logging import logger
from battlesim.system.settings import Settings, LOG_LEVELS
from battlesim.ui.battle import HumanDecisions, console, console_sink, render_field, render_outcome

DEFAULT_ALLIES = ["Chimchar", "Starly"]
DEFAULT_ENEMIES = ["Piplup", "Shinx"]


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="battlesim", description="Turn-based creature battle simulator")
    p.add_argument("--ally", action="append", metavar="NAME", help="ally party member (repeatable)")
    p.add_argument("--enemy", action="append", metavar="NAME", help="enemy party member (repeatable)")
    p.add_argument("--size", type=int, choices=(1, 2, 3), help="combatants per side on the field")
    p.add_argument("--level", type=int, help="level of every creature")
    p.add_argument("--seed", type=int, help="seed the random source for a reproducible run")
    p.add_argument("--ai", choices=sorted(AI_PROVIDERS), help="computer opponent strategy")
    p.add_argument("--auto", action="store_true", help="let the computer play both sides")
    p.add_argument("--log-level", choices=sorted(LOG_LEVELS), help="diagnostic log threshold")
    p.add_argument("--save-settings", action="store_true", help="persist the chosen options as defaults")
    return p


def _apply_overrides(settings: Settings, args: argparse.Namespace):
    data = settings.data
    if args.size is not None:
        data.battle_size = args.size
    if args.level is not None:
        data.level = args.level
    if args.seed is not None:
        data.seed = args.seed
    if args.ai is not None:
        data.ai = args.ai
    if args.log_level is not None:
        data.log_level = args.log_level
    data.normalize()


def run(argv: Optional[Sequence[str]] = None, *, service: Optional[BattleService] = None,
        settings: Optional[Settings] = None, human: Optional[HumanDecisions] = None) -> int:
    """Run one session; returns the process exit status."""
    args = build_parser().parse_args(argv)
    settings = settings or Settings.load()
    _apply_overrides(settings, args)
    settings.apply_logging()
    if args.save_settings:
        settings.save()

    data = settings.data
    service = service or BattleService()
    ally_names: List[str] = args.ally or DEFAULT_ALLIES
    enemy_names: List[str] = args.enemy or DEFAULT_ENEMIES
    provider = AI_PROVIDERS[data.ai]
    deciders = {
        Team.ALLY: provider() if args.auto else (human or HumanDecisions()),
        Team.ENEMY: provider(),
    }
    try:
        allies = service.build_party(ally_names, Team.ALLY, data.level)
        enemies = service.build_party(enemy_names, Team.ENEMY, data.level)
        result = service.run(allies, enemies, deciders=deciders, battle_size=data.battle_size, seed=data.seed,
                             message_cb=console_sink(), on_turn=None if args.auto else render_field)
    except (CatalogError, DataLoadError, ValidationError) as e:
        logger.error("SessionSetupFailed", error=str(e))
        return 2
    except (KeyboardInterrupt, EOFError):
        logger.info("SessionInterrupted")
        render_outcome(Outcome.ESCAPED, console)
        return 0
    render_outcome(Outcome(result["outcome"]), console)
    logger.info("SessionFinished", outcome=result["outcome"], turns=result["turns"])
    return 0


__all__ = ["run", "build_parser"]
