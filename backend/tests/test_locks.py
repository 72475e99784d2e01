import threading

import pytest

from mafia.errors import GameBusy
from mafia.services.games.locks import GameLocks


def test_second_trigger_waits_for_the_first():
    locks = GameLocks(timeout=2)
    order = []
    entered = threading.Event()
    release = threading.Event()

    def first():
        with locks.hold('g1'):
            entered.set()
            release.wait(2)
            order.append('first')

    def second():
        with locks.hold('g1'):
            order.append('second')

    t1 = threading.Thread(target=first)
    t1.start()
    assert entered.wait(2)
    t2 = threading.Thread(target=second)
    t2.start()
    assert locks.locked('g1')
    release.set()
    t1.join(2)
    t2.join(2)
    assert order == ['first', 'second']


def test_busy_game_times_out():
    locks = GameLocks(timeout=0.05)
    with locks.hold('g1'):
        errors = []

        def contender():
            try:
                with locks.hold('g1'):
                    pass
            except GameBusy as exc:
                errors.append(exc)

        t = threading.Thread(target=contender)
        t.start()
        t.join(2)
    assert len(errors) == 1


def test_games_lock_independently():
    locks = GameLocks(timeout=0.05)
    with locks.hold('g1'):
        with locks.hold('g2'):
            assert locks.locked('g1') and locks.locked('g2')
    assert not locks.locked('g1')


def test_lock_released_when_body_raises():
    locks = GameLocks(timeout=0.05)
    with pytest.raises(ValueError):
        with locks.hold('g1'):
            raise ValueError('boom')
    with locks.hold('g1'):
        pass


def test_discard_forgets_a_finished_game():
    locks = GameLocks(timeout=0.05)
    with locks.hold('g1'):
        pass
    assert 'g1' in locks
    locks.discard('g1')
    locks.discard('never-seen')
    assert 'g1' not in locks
    with locks.hold('g1'):
        assert locks.locked('g1')
