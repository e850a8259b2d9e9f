"""HTTP blueprints: rooms (multiplayer lifecycle) and players (roster search)."""
