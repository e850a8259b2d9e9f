import json
import random

import pytest

from guesspro.errors import DataUnavailable, EmptyPool, PlayerNotFound
from guesspro.services.players import PlayerDirectory, normalize_name


def test_load_all_is_cached(directory):
    players = directory.load_all()
    assert len(players) == 26
    assert directory.load_all() is players
    s1mple = next(p for p in players if p.id == 's1mple')
    assert s1mple.role == 'AWPer'
    assert s1mple.tournaments_played == 11


def test_by_difficulty_filters_by_tier(directory):
    normal = directory.by_difficulty('normal')
    hard = directory.by_difficulty('hard')
    assert {p.id for p in normal} >= {'s1mple', 'ZywOo'}
    assert 'jks' not in {p.id for p in normal}
    assert 'jks' in {p.id for p in hard}
    assert directory.by_difficulty('all') == directory.load_all()


def test_unknown_tier_falls_back_to_all(directory):
    assert directory.by_difficulty('nightmare') == directory.load_all()


def test_find_by_name_is_case_insensitive(directory):
    assert directory.find_by_name('ZYWOO').id == 'ZywOo'
    assert directory.find_by_name('  device ').id == 'device'


def test_find_by_name_is_scoped_to_tier(directory):
    assert directory.find_by_name('jks', 'hard').id == 'jks'
    with pytest.raises(PlayerNotFound):
        directory.find_by_name('jks', 'normal')
    with pytest.raises(PlayerNotFound):
        directory.find_by_name('nobody')


def test_random_from_picks_within_tier(directory):
    hard_ids = {p.id for p in directory.by_difficulty('hard')}
    for _ in range(20):
        assert directory.random_from('hard').id in hard_ids


def test_random_from_empty_pool(tmp_path):
    (tmp_path / 'players.json').write_text(json.dumps({
        'solo': {'team': 'T', 'country': 'France', 'birth_year': 2000, 'tournaments_played': 1, 'role': 'Rifler'},
    }))
    (tmp_path / 'difficulty_tiers.json').write_text(json.dumps({'normal': [], 'hard': []}))
    directory = PlayerDirectory(str(tmp_path), rng=random.Random(1))
    assert directory.random_from('all').id == 'solo'
    with pytest.raises(EmptyPool):
        directory.random_from('hard')


def test_missing_roster_is_data_unavailable(tmp_path):
    with pytest.raises(DataUnavailable):
        PlayerDirectory(str(tmp_path)).load_all()


def test_corrupt_roster_is_data_unavailable(tmp_path):
    (tmp_path / 'players.json').write_text('{not json')
    with pytest.raises(DataUnavailable):
        PlayerDirectory(str(tmp_path)).load_all()


def test_legacy_majors_field_is_accepted(tmp_path):
    (tmp_path / 'players.json').write_text(json.dumps({
        'old': {'team': 'T', 'country': 'Brazil', 'birth_year': 1995, 'majorsPlayed': 4, 'role': 'Coach'},
    }))
    player = PlayerDirectory(str(tmp_path)).load_all()[0]
    assert player.tournaments_played == 4
    assert player.role == 'Unknown'


def test_search_folds_lookalike_digits(directory):
    assert normalize_name('m0NESY') == 'monesy'
    names = [p.id for p in directory.search('simple')]
    assert names == ['s1mple']


def test_search_prefers_prefix_matches(directory):
    names = [p.id for p in directory.search('b')]
    assert names == ['b1t', 'bLitz', 'broky', 'HObbit', 'Somebody']
    assert [p.id for p in directory.search('b', 'hard')] == ['b1t', 'bLitz', 'HObbit', 'Somebody']
    assert directory.search('') == []
    assert len(directory.search('e', limit=3)) == 3
