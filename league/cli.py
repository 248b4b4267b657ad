"""
Command line entry points.

Usage:
    python -m league.cli seed fixtures.json
    python -m league.cli recompute <tournament_id>

The seed file holds three optional lists: "tournaments", "teams" and
"matches", each of documents in the same shape the web client stores.
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from .exceptions import LeagueError
from .models import StandingRow
from .services.pipeline import StandingsPipeline
from .storage import DatabaseError, DatabaseInterface, get_database


def seed(db: DatabaseInterface, data: Dict[str, Any]) -> Dict[str, int]:
    """Load tournaments, teams and matches into the store."""
    tournaments = data.get('tournaments', [])
    for tournament in tournaments:
        db.save_tournament(tournament)

    return {
        'tournaments': len(tournaments),
        'teams': db.save_teams(data.get('teams', [])),
        'matches': db.save_matches(data.get('matches', [])),
    }


def format_table(rows: List[StandingRow]) -> str:
    """Render standings as a fixed-width text table."""
    width = max([len(r.team) for r in rows] + [4])
    lines = [f"{'#':>3}  {'Team':<{width}}  {'W':>3} {'L':>3} {'D':>3} {'Pts':>4}"]
    for r in rows:
        lines.append(
            f"{r.rank:>3}  {r.team:<{width}}  {r.wins:>3} {r.losses:>3} {r.draws:>3} {r.points:>4}"
        )
    return "\n".join(lines)


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description='League standings tools')
    subparsers = parser.add_subparsers(dest='command', required=True)

    seed_parser = subparsers.add_parser('seed', help='Load documents from a JSON file')
    seed_parser.add_argument('path', help='JSON file with tournaments, teams and matches')

    recompute_parser = subparsers.add_parser('recompute', help='Recompute standings for a tournament')
    recompute_parser.add_argument('tournament_id', help='Tournament to recompute')

    args = parser.parse_args(argv)
    try:
        db = get_database()
    except DatabaseError as e:
        print(f"[-] Database unavailable: {e}")
        return 1

    if args.command == 'seed':
        try:
            data = json.loads(Path(args.path).read_text(encoding='utf-8'))
        except (OSError, json.JSONDecodeError) as e:
            print(f"[-] Could not read {args.path}: {e}")
            return 1
        try:
            counts = seed(db, data)
        except DatabaseError as e:
            print(f"[-] Seeding failed: {e}")
            return 1
        print(
            f"[+] Seeded {counts['tournaments']} tournaments, "
            f"{counts['teams']} teams, {counts['matches']} matches"
        )
        return 0

    try:
        result = StandingsPipeline(db).run(args.tournament_id)
    except LeagueError as e:
        print(f"[-] {e.code}: {e}")
        return 1

    print(format_table(result.standings))
    if result.skipped_match_ids:
        print(f"\n[!] Skipped matches: {', '.join(result.skipped_match_ids)}")
    for failure in result.history_failures:
        print(f"[!] History not written for match {failure.match_id}, team {failure.team_id}: {failure.error}")
    return 0


if __name__ == '__main__':
    sys.exit(main())
