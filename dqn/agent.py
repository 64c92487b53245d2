import os
from dataclasses import dataclass, field
from typing import List

import numpy as np
import torch as th

from flappygym import Action
from common import linear_decay
from dqn.network import Network
from dqn.replay_memory import Experience, ReplayMemory
from dqn.learner import QLearner, to_input


@dataclass
class DQNConfig:
    # Network architecture: input, hidden..., output
    layer_sizes: List[int] = field(default_factory=lambda: [4, 128, 128, 2])

    # Training hyperparameters
    learning_rate: float = 0.0001
    gamma: float = 0.99                 # discount factor
    epsilon_start: float = 1.0
    epsilon_end: float = 0.01
    epsilon_decay_steps: int = 10000

    # Replay memory
    replay_buffer_size: int = 10000
    batch_size: int = 32

    # Training schedule, driven by the training loop
    train_frequency: int = 4            # train every N steps
    target_update_frequency: int = 100  # sync target network every N steps

    # Adam
    adam_beta1: float = 0.9
    adam_beta2: float = 0.999
    adam_epsilon: float = 1e-8

    seed: int = 12345

    # Copy biases too when syncing the target network (weights only by default)
    sync_target_biases: bool = False
    # Divide the summed batch gradient by the batch size before the Adam step
    average_gradients: bool = False


class DQNAgent:
    def __init__(self, config=None):
        self.config = config if config is not None else DQNConfig()
        cfg = self.config
        self.online_net = Network(cfg.layer_sizes, cfg.seed)
        self.target_net = Network(cfg.layer_sizes, cfg.seed + 1)
        self.memory     = ReplayMemory(cfg.replay_buffer_size, cfg.seed + 2)
        self.learner    = QLearner(self, cfg)
        self.rng        = np.random.default_rng(cfg.seed + 3)   # exploration

        self.total_steps = 0
        self.epsilon = cfg.epsilon_start
        self.update_target_network()

    def select_action(self, state, epsilon=None):
        '''
        epsilon-greedy on the online network.
        Passing epsilon (e.g. 0 for evaluation) bypasses the decay schedule and leaves the step counter alone.
        '''
        if epsilon is None:
            self.total_steps += 1
            self.epsilon = linear_decay(self.total_steps, self.config.epsilon_decay_steps,
                                        self.config.epsilon_start, self.config.epsilon_end)
            epsilon = self.epsilon

        if self.rng.random() < epsilon:
            return Action.NO_FLAP if self.rng.random() < 0.5 else Action.FLAP

        q_values = self.online_net.forward(to_input(state))
        # Ties go to NO_FLAP
        return Action.FLAP if q_values[Action.FLAP] > q_values[Action.NO_FLAP] else Action.NO_FLAP

    def store_experience(self, state, action, reward, next_state, done):
        self.memory.push(Experience(state, Action(action), float(reward), next_state, bool(done)))

    def train(self):
        return self.learner.train(self.memory, self.config.batch_size)

    def update_target_network(self):
        self.target_net.set_weights(self.online_net.get_weights())
        if self.config.sync_target_biases:
            self.target_net.set_biases(self.online_net.get_biases())

    def get_epsilon(self):
        return self.epsilon

    def get_q_values(self, state):
        return self.online_net.forward(to_input(state))

    def get_training_steps(self):
        return self.learner.learn_cnt

    def get_total_steps(self):
        return self.total_steps

    def save_weights(self, filepath):
        dir_path = os.path.dirname(filepath)
        if dir_path and not os.path.exists(dir_path):
            os.makedirs(dir_path)
        th.save(self.online_net.state_dict(), filepath)

    def load_weights(self, filepath):
        self.online_net.load_state_dict(th.load(filepath, weights_only=True))
        # Loaded weights replace everything, so the target gets a full copy
        self.target_net.set_weights(self.online_net.get_weights())
        self.target_net.set_biases(self.online_net.get_biases())
