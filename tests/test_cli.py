"""Tests for the command line entry points."""

import json
from unittest.mock import patch

from league.cli import format_table, main, seed
from league.models import StandingRow
from league.storage import ConfigurationError


class TestSeed:
    """Tests for seeding a store."""

    def test_seed_counts(self, memory_db, sample_tournament, sample_teams, sample_matches):
        counts = seed(memory_db, {
            'tournaments': [sample_tournament],
            'teams': sample_teams,
            'matches': sample_matches,
        })

        assert counts == {'tournaments': 1, 'teams': 2, 'matches': 2}
        assert memory_db.get_tournament('t1')['name'] == 'Summer Showdown'

    def test_seed_command(self, memory_db, test_data_dir, sample_tournament, capsys):
        path = f"{test_data_dir}/seed.json"
        with open(path, 'w', encoding='utf-8') as f:
            json.dump({'tournaments': [sample_tournament]}, f)

        with patch('league.cli.get_database', return_value=memory_db):
            assert main(['seed', path]) == 0

        assert "Seeded 1 tournaments" in capsys.readouterr().out
        assert memory_db.get_tournament('t1') is not None

    def test_seed_missing_file(self, memory_db, test_data_dir, capsys):
        with patch('league.cli.get_database', return_value=memory_db):
            assert main(['seed', f"{test_data_dir}/absent.json"]) == 1

        assert capsys.readouterr().out.startswith("[-] Could not read")

    def test_seed_invalid_json(self, memory_db, test_data_dir, capsys):
        path = f"{test_data_dir}/broken.json"
        with open(path, 'w', encoding='utf-8') as f:
            f.write("{not json")

        with patch('league.cli.get_database', return_value=memory_db):
            assert main(['seed', path]) == 1

        assert "[-] Could not read" in capsys.readouterr().out
        assert memory_db.get_tournament('t1') is None

    def test_database_not_configured(self, capsys):
        with patch('league.cli.get_database', side_effect=ConfigurationError("Unknown DB_TYPE")):
            assert main(['recompute', 't1']) == 1

        assert "[-] Database unavailable: Unknown DB_TYPE" in capsys.readouterr().out


class TestRecompute:
    """Tests for the recompute command."""

    def test_recompute_prints_table(self, seeded_db, capsys):
        with patch('league.cli.get_database', return_value=seeded_db):
            assert main(['recompute', 't1']) == 0

        out = capsys.readouterr().out
        assert out.splitlines()[1].split() == ['1', 'A', '1', '0', '0', '3']
        assert seeded_db.get_tournament('t1')['standings'][0]['team'] == 'A'

    def test_recompute_unknown_tournament(self, seeded_db, capsys):
        with patch('league.cli.get_database', return_value=seeded_db):
            assert main(['recompute', 'nope']) == 1

        assert "NotFound" in capsys.readouterr().out


class TestFormatTable:
    """Tests for table rendering."""

    def test_columns_align(self):
        rows = [
            StandingRow(rank=1, team='Red Dragons', team_id='1', wins=3, points=9),
            StandingRow(rank=2, team='Jays', team_id='2', losses=3),
        ]

        lines = format_table(rows).splitlines()

        assert len({len(line) for line in lines}) == 1
        assert lines[2].split() == ['2', 'Jays', '0', '3', '0', '0']
