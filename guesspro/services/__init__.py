"""Game domain services: comparison, roster, sessions and rooms.

HTTP routes and socket handlers reach the per-app registries through the
accessors below, keeping transport concerns separated from the room
state machine.
"""
from flask import current_app

EXTENSION_KEY = 'guesspro'


def get_rooms():
    return current_app.extensions[EXTENSION_KEY]['rooms']


def get_sessions():
    return current_app.extensions[EXTENSION_KEY]['sessions']


def get_players():
    return current_app.extensions[EXTENSION_KEY]['players']
