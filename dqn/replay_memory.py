from typing import NamedTuple

import numpy as np

from flappygym import Action, Observation
from dqn.errors import InsufficientDataError

'''
memory单元素示例:
Experience(state=Observation(y, vy, dx_to_pipe, dy_to_gap), action=Action.FLAP, reward=0.0,
           next_state=Observation(...), done=False)

* 写满之前按顺序追加, 写满之后从 position 开始循环覆盖最旧的经验 (FIFO)
'''


class Experience(NamedTuple):
    state: Observation
    action: Action
    reward: float
    next_state: Observation
    done: bool


class ReplayMemory:
    def __init__(self, capacity, seed=12345):
        if capacity <= 0:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self.capacity = capacity                          # 经验回放缓冲区的容量
        self.memory   = np.empty(capacity, dtype=object)  # 主缓冲区
        self.size     = 0                                 # 当前存储的经验数量
        self.position = 0                                 # 写满后的循环覆盖位置
        self.rng      = np.random.default_rng(seed)

    def push(self, experience):
        experience = Experience(*experience)   # copy by value
        if self.size < self.capacity:
            self.memory[self.size] = experience
            self.size += 1
        else:
            self.memory[self.position] = experience
            self.position = (self.position + 1) % self.capacity

    def sample(self, batch_size):
        if self.size < batch_size:
            raise InsufficientDataError(
                f"Not enough experiences in memory: requested {batch_size}, stored {self.size}")
        # Shuffle all stored indices and take the first batch_size (no replacement)
        indices = self.rng.permutation(self.size)[:batch_size]
        return [self.memory[i] for i in indices]

    def can_sample(self, batch_size):
        return self.size >= batch_size

    def clear(self):
        self.memory   = np.empty(self.capacity, dtype=object)
        self.size     = 0
        self.position = 0

    def __len__(self):
        return self.size

    def __iter__(self):
        return iter(self.memory[:self.size])
