import pytest

from guesspro.errors import CapacityExceeded
from guesspro.services.sessions import SessionRegistry

from conftest import FakeChannel


class BrokenChannel(FakeChannel):
    def write(self, event, payload):
        raise ConnectionError('client went away')

    def close(self):
        raise ConnectionError('already closed')


def test_create_and_get(sessions):
    channel = FakeChannel()
    session = sessions.create('s1', 'g1', 'Alice', 'r1', channel)
    assert sessions.get('s1') is session
    assert session.channel is channel
    assert sessions.get('missing') is None
    assert sessions.count() == 1


def test_create_enforces_global_cap(clock):
    registry = SessionRegistry(max_sessions=2, clock=clock)
    registry.create('s1', 'g1', 'A', 'r1', FakeChannel())
    registry.create('s2', 'g2', 'B', 'r1', FakeChannel())
    with pytest.raises(CapacityExceeded):
        registry.create('s3', 'g3', 'C', 'r1', FakeChannel())
    assert registry.count() == 2


def test_remove_closes_channel(sessions):
    channel = FakeChannel()
    sessions.create('s1', 'g1', 'Alice', 'r1', channel)
    removed = sessions.remove('s1')
    assert removed.session_id == 's1'
    assert channel.closed
    assert sessions.get('s1') is None
    assert sessions.remove('s1') is None


def test_remove_swallows_close_errors(sessions):
    sessions.create('s1', 'g1', 'Alice', 'r1', BrokenChannel())
    assert sessions.remove('s1') is not None
    assert sessions.count() == 0


def test_heartbeat_refreshes_and_ignores_unknown(sessions, clock):
    session = sessions.create('s1', 'g1', 'Alice', 'r1', FakeChannel())
    clock.advance(50)
    assert sessions.heartbeat('s1')
    assert session.last_active_at == clock.now
    assert sessions.heartbeat('ghost') is False


def test_sweep_removes_idle_sessions(sessions, clock):
    idle = FakeChannel()
    sessions.create('idle', 'g1', 'Alice', 'r1', idle)
    clock.advance(100)
    sessions.create('fresh', 'g2', 'Bob', 'r1', FakeChannel())
    clock.advance(30)
    assert sessions.sweep() == ['idle']
    assert idle.closed
    assert sessions.get('idle') is None
    assert sessions.get('fresh') is not None


def test_sweep_delegates_to_expiry_callback(sessions, clock):
    expired = []
    sessions.on_expire = expired.append
    sessions.create('s1', 'g1', 'Alice', 'r1', FakeChannel())
    clock.advance(121)
    sessions.sweep()
    assert expired == ['s1']


def test_broadcast_is_scoped_to_room_and_survives_dead_channels(sessions):
    a, b, other = FakeChannel(), FakeChannel(), FakeChannel()
    sessions.create('s1', 'g1', 'A', 'r1', a)
    sessions.create('s2', 'g2', 'B', 'r1', BrokenChannel())
    sessions.create('s3', 'g3', 'C', 'r1', b)
    sessions.create('s4', 'g4', 'D', 'r2', other)

    sent = sessions.broadcast('r1', 'readyUpdate', {'gamerId': 'g1', 'ready': True})

    assert sent == 2
    assert a.events == [('readyUpdate', {'gamerId': 'g1', 'ready': True})]
    assert b.names() == ['readyUpdate']
    assert other.events == []


def test_broadcast_exclude(sessions):
    a, b = FakeChannel(), FakeChannel()
    sessions.create('s1', 'g1', 'A', 'r1', a)
    sessions.create('s2', 'g2', 'B', 'r1', b)
    sessions.broadcast('r1', 'gamerJoined', {'gamerId': 'g2'}, exclude=['s2'])
    assert a.names() == ['gamerJoined']
    assert b.events == []


def test_detach_room_resets_binding(sessions):
    sessions.create('s1', 'g1', 'A', 'r1', FakeChannel())
    sessions.create('s2', 'g2', 'B', 'r2', FakeChannel())
    detached = sessions.detach_room('r1')
    assert [s.session_id for s in detached] == ['s1']
    assert sessions.get('s1').room_id is None
    assert sessions.get('s2').room_id == 'r2'
