#!/usr/bin/env python3
"""
lineuphub sync CLI

Connects one fantasy platform, fetches a week's lineup and prints it in
display-slot order.

Usage:
    python sync_lineups.py sleeper --league-id 123456789 --team-id 1 --week 3
    python sync_lineups.py yahoo --access-token TOKEN --league-id 4242 --team-id 7
    python sync_lineups.py espn --team-url "https://fantasy.espn.com/football/team?leagueId=1&teamId=2" \
        --username me@example.com --password secret
    python sync_lineups.py espn --html-file saved_team_page.html
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from lineuphub import FantasyTeam, Lineup, UnifiedDispatcher, display_slots
from lineuphub.logging_config import setup_logging


def print_lineup(team: FantasyTeam, lineup: Lineup) -> None:
    """Print a lineup table: starters in display order, then the bench."""
    print("\n" + "=" * 60)
    print(f"{team.name} ({team.platform.value}) - {team.record} - Week {lineup.week}, {lineup.season}")
    if lineup.data_source.value == "placeholder":
        print("⚠️  Placeholder data: the team page could not be read")
    print("=" * 60)

    ordered = display_slots([lineup])
    extra = [slot for slot in lineup.starters if slot not in ordered]
    for slot in ordered + extra:
        player = lineup.starters[slot]
        points = f"{player.projected_points:.1f}" if player.projected_points is not None else "-"
        print(f"  {slot:<6} {player.name:<28} {player.position.value:<4} {player.team:<4} {points:>6}")

    if lineup.bench:
        print("  " + "-" * 56)
        for player in lineup.bench:
            print(f"  {'BENCH':<6} {player.name:<28} {player.position.value:<4} {player.team:<4}")

    print("=" * 60)
    print(f"  Projected: {lineup.total_projected_points:.2f}   Actual: {lineup.total_actual_points:.2f}")


async def run(args: argparse.Namespace) -> int:
    async with UnifiedDispatcher() as dispatcher:
        if args.html_file:
            html = Path(args.html_file).read_text(encoding="utf-8")
            team = dispatcher.create_espn_team_from_html(html, team_id=args.team_id, week=args.week)
            print_lineup(team, team.current_lineup)
            return 0

        credentials = {
            "leagueId": args.league_id,
            "teamId": args.team_id,
            "accessToken": args.access_token,
            "teamUrl": args.team_url,
            "username": args.username,
            "password": args.password,
            "week": args.week,
            "season": args.season,
        }
        credentials = {k: v for k, v in credentials.items() if v is not None}

        result = await dispatcher.connect_platform(args.platform, credentials)
        if not result.success:
            print(f"❌ Could not connect {result.platform}: {result.error}")
            return 1

        team = result.teams[0]
        lineup = team.current_lineup
        if lineup is None:
            sync, lineup = await dispatcher.sync_team(team, args.week or dispatcher.config.current_week)
            if lineup is None:
                print(f"❌ {sync.message}")
                return 1

        print_lineup(team, lineup)
        return 0


def main():
    parser = argparse.ArgumentParser(description="Fetch a fantasy lineup from ESPN, Yahoo or Sleeper")
    parser.add_argument(
        "platform",
        help="Platform tag: espn, yahoo or sleeper",
    )
    parser.add_argument("--league-id", "-l", help="League ID (Sleeper, Yahoo)")
    parser.add_argument("--team-id", "-t", help="Team/roster ID (Sleeper, Yahoo, saved ESPN page)")
    parser.add_argument("--access-token", help="Yahoo OAuth bearer token")
    parser.add_argument("--team-url", help="ESPN team page URL")
    parser.add_argument("--username", help="ESPN login (only needed without a stored session)")
    parser.add_argument("--password", help="ESPN password")
    parser.add_argument(
        "--html-file",
        help="Parse a saved ESPN team page instead of fetching one",
    )
    parser.add_argument("--week", "-w", type=int, default=None, help="Week number (default: config current_week)")
    parser.add_argument("--season", "-y", type=int, default=None, help="Season year (default: config current_season)")
    parser.add_argument(
        "--log-dir",
        default=None,
        help="Directory for log files (default: no log file)",
    )
    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Only log warnings and errors",
    )

    args = parser.parse_args()

    setup_logging(
        log_dir=Path(args.log_dir) if args.log_dir else None,
        level=logging.WARNING if args.quiet else logging.INFO,
        log_to_file=args.log_dir is not None,
    )

    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
