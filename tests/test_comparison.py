from guesspro.models import Player
from guesspro.services.comparison import (
    Verdict, compare, country_region, is_correct_guess,
)

YEAR = 2025


def make_player(id='alpha', team='Vitality', country='France', birth_year=2000,
                tournaments_played=6, role='Rifler'):
    return Player(id, id, team, country, birth_year, tournaments_played, role)


def test_compare_is_reflexive():
    p = make_player()
    mask = compare(p, p, current_year=YEAR)
    assert set(mask) == {'guessId', 'team', 'country', 'age', 'tournamentsPlayed', 'role'}
    assert all(v == Verdict.EXACT for v in mask.values())
    assert is_correct_guess(p, p)


def test_team_and_role_are_exact_or_different():
    target = make_player()
    guess = make_player(id='beta', team='FaZe', role='AWPer')
    mask = compare(guess, target, current_year=YEAR)
    assert mask['team'] == Verdict.DIFFERENT
    assert mask['role'] == Verdict.DIFFERENT
    assert mask['guessId'] == Verdict.DIFFERENT


def test_country_near_when_same_region():
    target = make_player(country='France')
    assert compare(make_player(id='b', country='Denmark'), target, YEAR)['country'] == Verdict.NEAR
    assert compare(make_player(id='b', country='Brazil'), target, YEAR)['country'] == Verdict.DIFFERENT
    assert compare(make_player(id='b', country='France'), target, YEAR)['country'] == Verdict.EXACT


def test_unmapped_country_defaults_to_apac():
    assert country_region('Atlantis') == 'APAC'
    target = make_player(country='China')
    assert compare(make_player(id='b', country='Atlantis'), target, YEAR)['country'] == Verdict.NEAR


def test_cis_is_its_own_region():
    target = make_player(country='Russia')
    assert compare(make_player(id='b', country='Kazakhstan'), target, YEAR)['country'] == Verdict.NEAR
    assert compare(make_player(id='b', country='Estonia'), target, YEAR)['country'] == Verdict.DIFFERENT


def test_age_verdict_describes_target_relative_to_guess():
    target = make_player(birth_year=2000)  # 25
    # Guessed player is older by 1: the target is younger -> LESS
    assert compare(make_player(id='b', birth_year=1999), target, YEAR)['age'] == Verdict.LESS
    # Guessed player is younger by 2: the target is older -> GREATER
    assert compare(make_player(id='b', birth_year=2002), target, YEAR)['age'] == Verdict.GREATER
    assert compare(make_player(id='b', birth_year=1997), target, YEAR)['age'] == Verdict.DIFFERENT
    assert compare(make_player(id='b', birth_year=2003), target, YEAR)['age'] == Verdict.DIFFERENT


def test_tournaments_use_wider_threshold():
    target = make_player(tournaments_played=10)
    assert compare(make_player(id='b', tournaments_played=13), target, YEAR)['tournamentsPlayed'] == Verdict.LESS
    assert compare(make_player(id='b', tournaments_played=7), target, YEAR)['tournamentsPlayed'] == Verdict.GREATER
    assert compare(make_player(id='b', tournaments_played=14), target, YEAR)['tournamentsPlayed'] == Verdict.DIFFERENT
    assert compare(make_player(id='b', tournaments_played=10), target, YEAR)['tournamentsPlayed'] == Verdict.EXACT


def test_identity_alone_decides_a_correct_guess():
    target = make_player(id='alpha')
    twin = make_player(id='alpha-twin')
    mask = compare(twin, target, current_year=YEAR)
    assert mask['team'] == mask['country'] == mask['age'] == Verdict.EXACT
    assert not is_correct_guess(twin, target)


def test_compare_defaults_to_current_year():
    p = make_player(birth_year=1990)
    q = make_player(id='b', birth_year=1990)
    assert compare(p, q)['age'] == Verdict.EXACT
