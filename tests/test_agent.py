"""Tests for DQNAgent and QLearner: action selection, target network syncing,
learning steps and weight persistence."""

import numpy as np
import pytest

from flappygym import Action, Observation
from dqn.agent import DQNAgent, DQNConfig
from dqn.errors import ShapeMismatchError


STATE = Observation(0.5, 0.0, 0.8, 0.05)
NEXT_STATE = Observation(0.49, -0.03, 0.79, 0.06)


def small_config(**overrides):
    params = dict(layer_sizes=[4, 8, 2], batch_size=4, replay_buffer_size=100,
                  epsilon_decay_steps=100, epsilon_start=1.0, epsilon_end=0.1, learning_rate=0.01)
    params.update(overrides)
    return DQNConfig(**params)


def fill(agent, n, done=False, reward=0.5, action=Action.FLAP):
    for _ in range(n):
        agent.store_experience(STATE, action, reward, NEXT_STATE, done)


def assert_same_arrays(a, b):
    assert len(a) == len(b)
    for x, y in zip(a, b):
        np.testing.assert_array_equal(x, y)


def test_default_config():
    cfg = DQNConfig()
    assert cfg.layer_sizes == [4, 128, 128, 2]
    assert cfg.gamma == 0.99
    assert cfg.batch_size == 32
    assert not cfg.sync_target_biases
    agent = DQNAgent()
    assert agent.get_epsilon() == 1.0
    assert agent.get_total_steps() == 0


def test_train_needs_a_full_batch():
    agent = DQNAgent(small_config())
    fill(agent, 3)
    assert agent.train() == 0.0
    assert agent.get_training_steps() == 0


def test_train_returns_finite_loss_and_counts_steps():
    agent = DQNAgent(small_config())
    fill(agent, 10)
    loss = agent.train()
    assert np.isfinite(loss)
    assert loss >= 0.0
    assert agent.get_training_steps() == 1
    agent.train()
    assert agent.get_training_steps() == 2
    assert agent.learner.optimizer.get_step() == 2


def test_loss_is_mean_squared_error_on_taken_action():
    agent = DQNAgent(small_config())
    fill(agent, 4, done=True, reward=1.0)
    q = agent.get_q_values(STATE)
    expected = float((q[Action.FLAP] - 1.0) ** 2)
    assert agent.train() == pytest.approx(expected, rel=1e-5)


def test_training_moves_prediction_toward_target():
    agent = DQNAgent(small_config(learning_rate=0.001))
    fill(agent, 8, done=True, reward=1.0)
    first = agent.train()
    for _ in range(20):
        last = agent.train()
    assert last < first


def test_compute_target_terminal_and_bootstrapped():
    agent = DQNAgent(small_config(gamma=0.9))
    fill(agent, 1, done=True, reward=-1.0)
    fill(agent, 1, done=False, reward=0.25)
    terminal, running = list(agent.memory)
    assert agent.learner.compute_target(terminal) == -1.0
    next_q = agent.target_net.forward(np.asarray(NEXT_STATE, dtype=np.float32))
    assert agent.learner.compute_target(running) == pytest.approx(0.25 + 0.9 * float(np.max(next_q)), rel=1e-6)
    assert agent.learner.compute_targets([terminal, running])[0] == -1.0


def test_epsilon_schedule():
    agent = DQNAgent(small_config())
    for _ in range(50):
        agent.select_action(STATE)
    assert agent.get_total_steps() == 50
    assert agent.get_epsilon() == pytest.approx(0.55)
    for _ in range(150):
        agent.select_action(STATE)
    assert agent.get_epsilon() == pytest.approx(0.1)


def test_zero_decay_steps_uses_final_epsilon():
    agent = DQNAgent(small_config(epsilon_decay_steps=0, epsilon_end=0.05))
    action = agent.select_action(STATE)
    assert action in (Action.NO_FLAP, Action.FLAP)
    assert agent.get_epsilon() == pytest.approx(0.05)
    assert agent.get_total_steps() == 1


def test_explicit_epsilon_skips_schedule():
    agent = DQNAgent(small_config())
    agent.select_action(STATE, epsilon=0.0)
    assert agent.get_total_steps() == 0
    assert agent.get_epsilon() == 1.0


def test_greedy_tie_goes_to_no_flap():
    agent = DQNAgent(small_config())
    agent.online_net.set_weights([np.zeros_like(W) for W in agent.online_net.weights])
    assert agent.select_action(STATE, epsilon=0.0) == Action.NO_FLAP


def test_greedy_picks_larger_q_value():
    agent = DQNAgent(small_config())
    agent.online_net.set_weights([np.zeros_like(W) for W in agent.online_net.weights])
    agent.online_net.set_biases([np.zeros(8), np.array([0.0, 1.0])])
    assert agent.select_action(STATE, epsilon=0.0) == Action.FLAP
    agent.online_net.set_biases([np.zeros(8), np.array([1.0, 0.0])])
    assert agent.select_action(STATE, epsilon=0.0) == Action.NO_FLAP


def test_full_exploration_picks_both_actions():
    agent = DQNAgent(small_config())
    actions = {agent.select_action(STATE, epsilon=1.0) for _ in range(100)}
    assert actions == {Action.NO_FLAP, Action.FLAP}


def test_target_starts_as_copy_of_online_weights():
    agent = DQNAgent(small_config())
    assert_same_arrays(agent.target_net.weights, agent.online_net.weights)
    np.testing.assert_array_equal(agent.target_net.forward(STATE), agent.online_net.forward(STATE))


def test_sync_copies_weights_but_not_biases():
    agent = DQNAgent(small_config())
    fill(agent, 10)
    agent.train()
    online_biases = agent.online_net.get_biases()
    assert any(np.any(b != 0.0) for b in online_biases)

    agent.update_target_network()
    assert_same_arrays(agent.target_net.weights, agent.online_net.weights)
    assert all(np.all(b == 0.0) for b in agent.target_net.biases)


def test_sync_copies_biases_when_enabled():
    agent = DQNAgent(small_config(sync_target_biases=True))
    fill(agent, 10)
    agent.train()
    agent.update_target_network()
    assert_same_arrays(agent.target_net.biases, agent.online_net.biases)
    np.testing.assert_array_equal(agent.target_net.forward(STATE), agent.online_net.forward(STATE))


def test_target_does_not_alias_online():
    agent = DQNAgent(small_config())
    agent.update_target_network()
    agent.online_net.weights[0][0, 0] += 1.0
    assert agent.target_net.weights[0][0, 0] != agent.online_net.weights[0][0, 0]


def test_train_leaves_target_untouched():
    agent = DQNAgent(small_config())
    before_w, before_b = agent.target_net.get_weights(), agent.target_net.get_biases()
    fill(agent, 10)
    for _ in range(5):
        agent.train()
    assert_same_arrays(agent.target_net.weights, before_w)
    assert_same_arrays(agent.target_net.biases, before_b)
    assert not np.array_equal(agent.online_net.weights[0], before_w[0])


def test_average_gradients_takes_smaller_first_step():
    # Adam normalizes the step size, so look at the gradients handed to it
    recorded = {}
    for name, average in (('summed', False), ('averaged', True)):
        agent = DQNAgent(small_config(average_gradients=average))
        fill(agent, 4, done=True, reward=1.0)

        def record(weights, biases, weight_gradients, bias_gradients, name=name):
            recorded[name] = weight_gradients + bias_gradients

        agent.learner.optimizer.update = record
        agent.train()
    for s, a in zip(recorded['summed'], recorded['averaged']):
        np.testing.assert_allclose(a, s / 4, rtol=1e-5, atol=1e-7)


def test_save_and_load_round_trip(tmp_path):
    agent = DQNAgent(small_config())
    fill(agent, 10)
    agent.train()
    path = tmp_path / 'models' / 'agent.th'
    agent.save_weights(str(path))
    assert path.exists()

    other = DQNAgent(small_config(seed=999))
    other.load_weights(str(path))
    np.testing.assert_array_equal(other.get_q_values(STATE), agent.get_q_values(STATE))
    assert_same_arrays(other.online_net.biases, agent.online_net.biases)
    # the target gets weights and biases of the loaded model
    assert_same_arrays(other.target_net.weights, agent.online_net.weights)
    assert_same_arrays(other.target_net.biases, agent.online_net.biases)


def test_load_rejects_different_architecture(tmp_path):
    path = str(tmp_path / 'big.th')
    DQNAgent(small_config(layer_sizes=[4, 16, 2])).save_weights(path)
    with pytest.raises(ShapeMismatchError):
        DQNAgent(small_config()).load_weights(path)
