import pytest

from flappygym import Action, Observation
from dqn.errors import InsufficientDataError
from dqn.replay_memory import Experience, ReplayMemory


def experience(i, done=False):
    state = Observation(0.5, 0.0, 1.0, 0.0)
    return Experience(state, Action.NO_FLAP, float(i), state, done)


def test_capacity_must_be_positive():
    with pytest.raises(ValueError):
        ReplayMemory(0)


def test_push_until_full():
    memory = ReplayMemory(10)
    for i in range(4):
        memory.push(experience(i))
    assert len(memory) == 4
    assert memory.position == 0
    assert [e.reward for e in memory] == [0.0, 1.0, 2.0, 3.0]


def test_overwrites_oldest_when_full():
    memory = ReplayMemory(10)
    for i in range(15):
        memory.push(experience(i))
    assert len(memory) == 10
    assert sorted(e.reward for e in memory) == [float(i) for i in range(5, 15)]
    # the write position wrapped past the first five slots
    assert memory.position == 5
    assert memory.memory[0].reward == 10.0
    assert memory.memory[5].reward == 5.0


def test_sample_distinct_without_replacement():
    memory = ReplayMemory(50, seed=3)
    for i in range(20):
        memory.push(experience(i))
    batch = memory.sample(20)
    assert sorted(e.reward for e in batch) == [float(i) for i in range(20)]
    batch = memory.sample(8)
    assert len({e.reward for e in batch}) == 8


def test_sample_is_seeded():
    a, b = ReplayMemory(50, seed=7), ReplayMemory(50, seed=7)
    for i in range(30):
        a.push(experience(i))
        b.push(experience(i))
    assert [e.reward for e in a.sample(10)] == [e.reward for e in b.sample(10)]


def test_sample_requires_enough_data():
    memory = ReplayMemory(10)
    for i in range(3):
        memory.push(experience(i))
    assert memory.can_sample(3)
    assert not memory.can_sample(4)
    with pytest.raises(InsufficientDataError):
        memory.sample(4)
    with pytest.raises(ValueError):
        memory.sample(4)


def test_clear():
    memory = ReplayMemory(5)
    for i in range(7):
        memory.push(experience(i))
    memory.clear()
    assert len(memory) == 0
    assert memory.position == 0
    assert not memory.can_sample(1)
    memory.push(experience(99))
    assert [e.reward for e in memory] == [99.0]


def test_push_accepts_plain_tuples():
    memory = ReplayMemory(2)
    state = Observation(0.4, 0.1, 0.6, -0.1)
    memory.push((state, Action.FLAP, 1.0, state, True))
    stored = next(iter(memory))
    assert isinstance(stored, Experience)
    assert stored.action == Action.FLAP
    assert stored.done
