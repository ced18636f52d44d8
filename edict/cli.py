"""
Edict CLI - Command-line interface for the engine.

Usage:
    edict simulate [--seed S] [--difficulty D] [--days N] [--save PATH]
                                   Play the starter content with a greedy auto-player
    edict inspect <save_file>      Validate a save file and print a summary
"""

import argparse
import logging
import sys

from pydantic import ValidationError

from .config import settings


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description=f"{settings.app_name} - Narrative Card Game Engine",
        prog="edict",
    )
    parser.add_argument("--log-level", default=settings.log_level, help="Logging level")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Simulate command
    simulate_parser = subparsers.add_parser("simulate", help="Run a headless game with the starter content")
    simulate_parser.add_argument("--seed", help="Random seed")
    simulate_parser.add_argument("--difficulty", default=settings.default_difficulty, help="Difficulty name")
    simulate_parser.add_argument("--days", type=int, default=None, help="Stop after this many days")
    simulate_parser.add_argument("--save", help="Write the final snapshot to this JSON file")

    # Inspect command
    inspect_parser = subparsers.add_parser("inspect", help="Validate and summarize a save file")
    inspect_parser.add_argument("save_file", help="Path to save JSON")

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "simulate":
        return cmd_simulate(args)
    elif args.command == "inspect":
        return cmd_inspect(args)
    else:
        parser.print_help()
        sys.exit(1)


def cmd_simulate(args):
    """Play the starter content without input."""
    from .content import deal_starting_hand, starter_cards, starter_scenes
    from .engine_core.rules import DIFFICULTY_CONFIG
    from .session import GameSession

    if args.difficulty not in DIFFICULTY_CONFIG:
        print(f"Error: unknown difficulty '{args.difficulty}' (choose from {', '.join(DIFFICULTY_CONFIG)})")
        sys.exit(1)

    game = GameSession()
    game.register_card_templates(starter_cards())
    game.register_scenes(starter_scenes())
    game.start_new_game(args.difficulty, args.seed)
    deal_starting_hand(game)
    _equip_everything(game)
    game.refresh_available_scenes()

    print(f"Seed: {game.seed}  Difficulty: {game.difficulty}")
    print(f"Execution in {game.time.execution_countdown} days")

    days_played = 0
    ending = None
    while ending is None and (args.days is None or days_played < args.days):
        joined = auto_participate(game)
        report = game.next_day()
        days_played += 1

        print(f"\nDay {report.settled_day}: joined {', '.join(joined) or 'nothing'}")
        for result in report.settlement.settlements:
            outcome = f" [{result.check_result.value}]" if result.check_result else ""
            print(f"  {result.scene_id}{outcome}: {result.narrative}")
        for scene_id in report.settlement.absences:
            print(f"  {scene_id}: missed")
        print(
            f"  gold={game.resources.gold} reputation={game.resources.reputation} "
            f"golden_dice={game.resources.golden_dice} cards={game.cards.card_count}"
        )
        ending = report.ending

    if ending is not None:
        print(f"\n{ending.message} ({ending.ending_type.value})")

    if args.save:
        snapshot = game.create_save_data()
        with open(args.save, "w", encoding="utf-8") as f:
            f.write(snapshot.to_json())
        print(f"Saved {snapshot.save_id} to {args.save}")
    return 0


def _equip_everything(game):
    items = game.equipment.get_unequipped_items()
    for character in game.cards.get_character_cards():
        while items and character.can_equip_more():
            game.equipment.equip(character.instance_id, items.pop(0).instance_id)


def auto_participate(game):
    """
    Greedy player: fill every available scene with free cards.

    Character slots get the strongest free character for the scene's
    check attribute. Returns the ids of the scenes joined.
    """
    from .engine_core.errors import SlotTypeMismatch
    from .engine_core.scenes import DiceCheckSettlement, SlotType

    joined = []
    for state in game.scenes.get_available_scenes():
        template = game.scenes.get_scene(state.scene_id)
        settlement = template.settlement
        attribute = settlement.check.attribute if isinstance(settlement, DiceCheckSettlement) else None

        for slot in state.slot_states:
            candidates = game.cards.get_available_cards()
            if slot.slot_type == SlotType.CHARACTER and attribute is not None:
                candidates.sort(key=lambda c: game.equipment.get_total_attribute(c.instance_id, attribute), reverse=True)
            for card in candidates:
                if not game.scenes.can_place_card(state.scene_id, slot.slot_index, card.instance_id, game.cards):
                    continue
                try:
                    game.scenes.place_card(state.scene_id, slot.slot_index, card.instance_id, game.cards)
                except SlotTypeMismatch:
                    continue
                break

        if game.scenes.participate_scene(state.scene_id, game.cards):
            joined.append(state.scene_id)
        else:
            for slot in state.slot_states:
                game.scenes.remove_card_from_slot(state.scene_id, slot.slot_index)
    return joined


def cmd_inspect(args):
    """Validate a save file."""
    from .session import SaveSnapshot

    try:
        with open(args.save_file, "r", encoding="utf-8") as f:
            raw = f.read()
    except FileNotFoundError:
        print(f"Error: File not found: {args.save_file}")
        sys.exit(1)

    try:
        snapshot = SaveSnapshot.from_json(raw)
    except ValidationError as e:
        print(f"Invalid save file: {args.save_file}")
        for error in e.errors():
            location = ".".join(str(part) for part in error["loc"])
            print(f"  - {location}: {error['msg']}")
        sys.exit(1)

    state = snapshot.game_state
    print(f"Save: {snapshot.save_id} ({snapshot.timestamp.isoformat()})")
    print(f"Difficulty: {snapshot.difficulty}  Seed: {snapshot.random_seed}")
    print(f"Day {state.current_day}, {state.execution_countdown} days to execution")
    print(
        f"Gold {state.gold}, reputation {state.reputation}, golden dice {state.golden_dice}, "
        f"rewinds {state.rewind_charges}, think {state.think_charges}"
    )
    print(f"Cards: {len(snapshot.cards.hand)} held, {sum(len(v) for v in snapshot.cards.locked_in_scenes.values())} locked")
    print(f"Scenes: {len(snapshot.scenes.active)} active, {len(snapshot.scenes.completed)} completed")
    return 0


if __name__ == "__main__":
    main()
