import sys
import asyncio
import argparse
from typing import List, Optional

# --- Settings/Logging ---
from src.logging.setup import setup_logging
from src.config.settings import settings

setup_logging()

from loguru import logger

# --- End Settings/Logging ---

from src.balancing.errors import BalancingError
from src.balancing.rating import MAX_SKILL_POINTS, MIN_SKILL_POINTS
from src.balancing.team_balancer import SUPPORTED_TEAM_COUNTS
from src.models.match import Match
from src.models.player import DEFAULT_SKILL_POINTS, Player
from src.models.team import Team
from src.services.team_service import TeamService
from src.storage.local_cache import LocalCache
from src.storage.sheets_client import SheetsClient, SheetsError

from rich import print
from rich.panel import Panel
from rich.table import Table


def render_players(players: List[Player]) -> Table:
    table = Table(title=f"Players ({len(players)})")
    table.add_column("ID", style="dim")
    table.add_column("Name")
    table.add_column("Position")
    table.add_column("Skill", justify="right")
    for p in players:
        name = f"{p.name} [bold cyan](GK)[/]" if p.is_goalkeeper else p.name
        table.add_row(p.id, name, p.position or "N/A", str(p.skill_points))
    return table


def render_team(team: Team) -> Panel:
    lines = [
        f"{p.name} - {p.position or 'N/A'} - {p.skill_points}" for p in team.players
    ]
    body = "\n".join(lines) if lines else "[dim]No players[/]"
    return Panel(
        body,
        title=f"{team.name} | {len(team.players)} players | Total={team.total_points}",
    )


def render_matches(matches: List[Match]) -> Table:
    table = Table(title=f"Matches ({len(matches)})")
    table.add_column("ID", style="dim")
    table.add_column("Date")
    table.add_column("Match")
    table.add_column("Score", justify="center")
    for m in matches:
        table.add_row(m.id, m.date, f"{m.team1} vs {m.team2}", f"{m.score1} - {m.score2}")
    return table


async def run_balance(service: TeamService, args: argparse.Namespace) -> None:
    outcome = await service.balance(
        selected_ids=args.player or None,
        team_count=args.teams,
        persist=not args.dry_run,
    )

    print(f"\n=== Spread: {outcome.spread} ===\n")
    for team in outcome.teams:
        print(render_team(team))

    if outcome.match:
        saved = "saved" if outcome.match_saved else "[red]not saved[/]"
        print(f"Match {outcome.match.id}: {outcome.match.team1} vs {outcome.match.team2} ({saved})")
    if not args.dry_run and not outcome.teams_saved:
        logger.warning("Teams were not saved to Google Sheets.")


async def run_command(args: argparse.Namespace) -> None:
    client = SheetsClient()
    service = TeamService(client, LocalCache())
    try:
        if args.command == "balance":
            await run_balance(service, args)
        elif args.command == "players":
            print(render_players(await service.load_roster()))
        elif args.command == "matches":
            print(render_matches(await service.load_matches()))
        elif args.command == "score":
            outcome = await service.record_score(args.match_id, args.score1, args.score2)
            print(f"Updated: {outcome.match.description}")
            print(
                f"Skill points: {outcome.match.team1} {outcome.team1_delta:+d}, "
                f"{outcome.match.team2} {outcome.team2_delta:+d} "
                f"({outcome.players_updated} players updated)"
            )
        elif args.command == "add-player":
            player = await service.add_player(
                args.name, position=args.position, skill_points=args.skill
            )
            print(render_players([player]))
        elif args.command == "update-player":
            player = await service.update_player(
                args.player_id,
                name=args.name,
                position=args.position,
                skill_points=args.skill,
            )
            print(render_players([player]))
        elif args.command == "delete-player":
            await service.delete_player(args.player_id)
            print(f"Deleted player {args.player_id}")
        elif args.command == "delete-match":
            await service.delete_match(args.match_id)
            print(f"Deleted match {args.match_id}")
        elif args.command == "ping":
            result = await client.test_connection()
            print(Panel(str(result.get("message", "OK")), title="Google Apps Script"))
    finally:
        await client.close()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Football Manager: balanced teams from the Google Sheets roster."
    )
    sub = parser.add_subparsers(dest="command", required=True)

    balance = sub.add_parser("balance", help="Split selected players into balanced teams.")
    balance.add_argument(
        "--teams",
        type=int,
        choices=SUPPORTED_TEAM_COUNTS,
        default=settings.default_team_count,
        help="Number of teams (default: %(default)s).",
    )
    balance.add_argument(
        "--player",
        action="append",
        metavar="ID",
        help="Player id to include; repeat for each player (default: whole roster).",
    )
    balance.add_argument(
        "--dry-run", action="store_true", help="Do not save teams or create a match."
    )

    sub.add_parser("players", help="List the roster.")
    sub.add_parser("matches", help="List recorded matches.")

    score = sub.add_parser("score", help="Record a match score.")
    score.add_argument("match_id")
    score.add_argument("score1", type=int)
    score.add_argument("score2", type=int)

    skill_choices = range(MIN_SKILL_POINTS, MAX_SKILL_POINTS + 1)

    add_player = sub.add_parser("add-player", help="Add a player to the roster.")
    add_player.add_argument("name")
    add_player.add_argument("--position", default="", help="Free-text position, e.g. 'Thủ môn'.")
    add_player.add_argument(
        "--skill",
        type=int,
        choices=skill_choices,
        default=DEFAULT_SKILL_POINTS,
        metavar="1-10",
        help="Skill points (default: %(default)s).",
    )

    update_player = sub.add_parser("update-player", help="Edit a player's details.")
    update_player.add_argument("player_id")
    update_player.add_argument("--name")
    update_player.add_argument("--position")
    update_player.add_argument("--skill", type=int, choices=skill_choices, metavar="1-10")

    delete_player = sub.add_parser("delete-player", help="Remove a player from the roster.")
    delete_player.add_argument("player_id")

    delete_match = sub.add_parser("delete-match", help="Remove a recorded match.")
    delete_match.add_argument("match_id")

    sub.add_parser("ping", help="Check the Apps Script deployment.")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        asyncio.run(run_command(args))
    except BalancingError as e:
        logger.error(f"Cannot balance teams: {e}")
        return 1
    except SheetsError as e:
        logger.error(f"Google Sheets error: {e}")
        return 1
    except ValueError as e:
        logger.error(str(e))
        return 1
    return 0


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        logger.info("Execution interrupted by user (KeyboardInterrupt).")
        sys.exit(0)
    except Exception as e:
        logger.exception(f"Unhandled exception in main execution: {e}")
        sys.exit(1)
