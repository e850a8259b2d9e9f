"""Attribute comparison between a guessed player and the hidden target.

Ordinal attributes (age, tournaments played) use ``delta = guessed - target``.
The verdict describes the hidden target relative to the guess:

* ``0 < delta <= threshold``  -> LESS    (target is a bit younger / has fewer)
* ``-threshold <= delta < 0`` -> GREATER (target is a bit older / has more)
* ``delta == 0``              -> EXACT
* anything further apart      -> DIFFERENT
"""
from datetime import date
from typing import Dict, Optional

from guesspro.models import Player


class Verdict:
    EXACT = 'M'
    NEAR = 'N'
    DIFFERENT = 'D'
    GREATER = 'G'
    LESS = 'L'


AGE_NEAR_THRESHOLD = 2
TOURNAMENTS_NEAR_THRESHOLD = 3

DEFAULT_REGION = 'APAC'

_REGION_COUNTRIES = {
    'Europe': (
        'Denmark', 'France', 'Germany', 'Sweden', 'Norway', 'Finland', 'Poland',
        'Netherlands', 'Belgium', 'Spain', 'Portugal', 'Italy', 'Switzerland',
        'Austria', 'Czech Republic', 'Slovakia', 'Hungary', 'Romania', 'Bulgaria',
        'Croatia', 'Serbia', 'Montenegro', 'Bosnia and Herzegovina', 'Slovenia',
        'Estonia', 'Latvia', 'Lithuania', 'Turkey', 'UK', 'United Kingdom',
        'Ireland', 'Iceland', 'Greece', 'Cyprus', 'Malta', 'Luxembourg',
        'Liechtenstein', 'Monaco', 'Andorra', 'San Marino', 'Vatican City',
        'Kosovo', 'North Macedonia', 'Albania',
    ),
    'CIS': (
        'Russia', 'Ukraine', 'Belarus', 'Kazakhstan', 'Uzbekistan', 'Turkmenistan',
        'Kyrgyzstan', 'Tajikistan', 'Armenia', 'Azerbaijan', 'Georgia', 'Moldova',
        'CIS',
    ),
    'Americas': (
        'USA', 'United States', 'Canada', 'Brazil', 'Argentina', 'Chile', 'Peru',
        'Colombia', 'Mexico', 'Uruguay', 'Paraguay', 'Bolivia', 'Ecuador',
        'Venezuela', 'Guyana', 'Suriname', 'French Guiana', 'Guatemala', 'Belize',
        'El Salvador', 'Honduras', 'Nicaragua', 'Costa Rica', 'Panama', 'Cuba',
        'Jamaica', 'Haiti', 'Dominican Republic',
    ),
    'APAC': (
        'China', 'Japan', 'South Korea', 'Thailand', 'Vietnam', 'Singapore',
        'India', 'Israel', 'UAE', 'Saudi Arabia', 'Egypt', 'Iran', 'Iraq',
        'Jordan', 'Lebanon', 'Syria', 'Yemen', 'Oman', 'Qatar', 'Bahrain',
        'Kuwait', 'Pakistan', 'Bangladesh', 'Sri Lanka', 'Myanmar', 'Cambodia',
        'Laos', 'Malaysia', 'Indonesia', 'Philippines', 'Brunei', 'Maldives',
        'Nepal', 'Bhutan', 'Mongolia', 'North Korea', 'Taiwan', 'Hong Kong',
        'Macau', 'Australia', 'New Zealand', 'Fiji', 'Papua New Guinea',
        'Solomon Islands', 'Vanuatu', 'Samoa', 'Tonga', 'Kiribati', 'Tuvalu',
        'Nauru', 'Palau', 'Marshall Islands', 'Micronesia', 'Unknown',
    ),
}

COUNTRY_REGIONS: Dict[str, str] = {
    country: region
    for region, countries in _REGION_COUNTRIES.items()
    for country in countries
}


def country_region(country: str) -> str:
    return COUNTRY_REGIONS.get(country, DEFAULT_REGION)


def age_of(player: Player, current_year: Optional[int] = None) -> int:
    year = current_year if current_year is not None else date.today().year
    return year - player.birth_year


def _equality(guessed, target) -> str:
    return Verdict.EXACT if guessed == target else Verdict.DIFFERENT


def _ordinal(guessed: int, target: int, threshold: int) -> str:
    delta = guessed - target
    if delta == 0:
        return Verdict.EXACT
    if 0 < delta <= threshold:
        return Verdict.LESS
    if -threshold <= delta < 0:
        return Verdict.GREATER
    return Verdict.DIFFERENT


def _country(guessed: str, target: str) -> str:
    if guessed == target:
        return Verdict.EXACT
    if country_region(guessed) == country_region(target):
        return Verdict.NEAR
    return Verdict.DIFFERENT


def compare(guessed: Player, target: Player, current_year: Optional[int] = None) -> Dict[str, str]:
    """Return the match mask for ``guessed`` against ``target``.

    Ages are derived from birth years at evaluation time; pass
    ``current_year`` to pin the reference year.
    """
    if current_year is None:
        current_year = date.today().year
    return {
        'guessId': _equality(guessed.id, target.id),
        'team': _equality(guessed.team, target.team),
        'country': _country(guessed.country, target.country),
        'age': _ordinal(
            age_of(guessed, current_year), age_of(target, current_year), AGE_NEAR_THRESHOLD
        ),
        'tournamentsPlayed': _ordinal(
            guessed.tournaments_played, target.tournaments_played, TOURNAMENTS_NEAR_THRESHOLD
        ),
        'role': _equality(guessed.role, target.role),
    }


def is_correct_guess(guessed: Player, target: Player) -> bool:
    return str(guessed.id) == str(target.id)
