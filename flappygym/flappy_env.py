from dataclasses import dataclass
from enum import IntEnum
from typing import NamedTuple

import numpy as np
import gymnasium as gym
from gymnasium import spaces

BIRD_X = 0.20          # fixed horizontal position of the bird
FIRST_PIPE_X = 1.0     # where the first pipe is placed on reset
LOOKAHEAD_X = 3.0      # keep spawning pipes until the furthest one reaches this x


class Action(IntEnum):
    NO_FLAP = 0
    FLAP = 1


class Observation(NamedTuple):
    y: float
    vy: float
    dx_to_pipe: float
    dy_to_gap: float


class StepResult(NamedTuple):
    observation: Observation
    reward: float
    done: bool


@dataclass
class EnvConfig:
    world_height: float = 1.0
    pipe_width: float = 0.1
    pipe_gap: float = 0.25
    pipe_spacing: float = 0.60     # distance from one pipe center to the next
    pipe_speed: float = 0.50       # scroll speed (units per second)
    dt: float = 1.0 / 60.0

    # Physics
    gravity: float = -2.0          # downward acceleration
    flap_impulse: float = 0.60     # vy += impulse on flap
    term_vy: float = -3.0          # max downward speed
    max_vy: float = 2.5            # max upward speed

    # Rewards
    r_pass: float = 1.0            # crossing a pipe centerline
    r_death: float = -1.0          # terminal collision
    r_step: float = 0.0            # per-step shaping

    # Range of the gap center
    gap_y_min: float = 0.30
    gap_y_max: float = 0.70


class Pipe:
    __slots__ = ('x', 'gap_y')

    def __init__(self, x, gap_y):
        self.x = x
        self.gap_y = gap_y


class FlappyEnv(gym.Env):
    ''' Side-scrolling bird/pipe simulation. The bird is a point at BIRD_X, only its y moves. '''

    def __init__(self, seed=0, config=None):
        super(FlappyEnv, self).__init__()
        self.config = config if config is not None else EnvConfig()
        self.action_space = spaces.Discrete(2)
        self.observation_space = spaces.Box(low=-np.inf, high=np.inf, shape=(4,), dtype=np.float32)
        self.reset(seed)

    def reset(self, seed):
        # Seeds self.np_random, so pipe gaps are reproducible for a fixed seed
        super(FlappyEnv, self).reset(seed=int(seed))
        cfg = self.config

        # Bird
        self.y = 0.5 * cfg.world_height
        self.vy = 0.0

        # Pipes
        self.pipes = []
        self.current_idx = 0
        self.add_pipe(FIRST_PIPE_X)
        while self.pipes[-1].x < LOOKAHEAD_X:
            self.add_pipe(self.pipes[-1].x + cfg.pipe_spacing)

        # Episode
        self.passed_flag = False   # re-armed when a new pipe becomes current
        self.done = False
        self.steps = 0
        self.score = 0             # pipes passed in this episode
        return self.observe()

    def step(self, action):
        if self.done:
            return StepResult(self.observe(), 0.0, True)

        cfg = self.config
        self.steps += 1
        reward = cfg.r_step

        # Action, gravity, clamp, integrate
        if action == Action.FLAP:
            self.vy += cfg.flap_impulse
        self.vy += cfg.gravity * cfg.dt
        self.vy = min(max(self.vy, cfg.term_vy), cfg.max_vy)
        self.y += self.vy * cfg.dt

        # Scroll, prune, advance, spawn
        self._scroll(cfg.pipe_speed * cfg.dt)
        self._prune()
        self._advance_current()
        self._spawn()

        if self.check_collision():
            self.done = True
            reward = cfg.r_death
        elif self.passed_pipe():
            reward += cfg.r_pass
            self.passed_flag = True
            self.score += 1

        return StepResult(self.observe(), reward, self.done)

    def _scroll(self, distance):
        for pipe in self.pipes:
            pipe.x -= distance

    def _prune(self):
        half_width = 0.5 * self.config.pipe_width
        removed = 0
        while self.pipes and self.pipes[0].x + half_width < 0.0:
            self.pipes.pop(0)
            removed += 1
        self.current_idx = max(0, self.current_idx - removed)

    def _advance_current(self):
        half_width = 0.5 * self.config.pipe_width
        while (self.current_idx + 1 < len(self.pipes)
               and self.pipes[self.current_idx].x + half_width < BIRD_X):
            self.current_idx += 1
            self.passed_flag = False

    def _spawn(self):
        furthest_x = self.pipes[-1].x if self.pipes else 0.0
        while furthest_x < LOOKAHEAD_X:
            self.add_pipe(furthest_x + self.config.pipe_spacing)
            furthest_x = self.pipes[-1].x

    def add_pipe(self, x):
        self.pipes.append(Pipe(x, self.sample_gap_center()))

    def sample_gap_center(self):
        cfg = self.config
        return cfg.gap_y_min + self.np_random.uniform() * (cfg.gap_y_max - cfg.gap_y_min)

    def current_pipe(self):
        if self.current_idx < len(self.pipes):
            return self.pipes[self.current_idx]
        return None

    def check_collision(self):
        cfg = self.config
        # Floor / ceiling
        if self.y <= 0.0 or self.y >= cfg.world_height:
            return True

        # Only the current pipe can be hit
        pipe = self.current_pipe()
        if pipe is None:
            return False
        half_width = 0.5 * cfg.pipe_width
        if pipe.x - half_width <= BIRD_X <= pipe.x + half_width:
            gap_top = pipe.gap_y + 0.5 * cfg.pipe_gap
            gap_bottom = pipe.gap_y - 0.5 * cfg.pipe_gap
            if self.y <= gap_bottom or self.y >= gap_top:
                return True
        return False

    def passed_pipe(self):
        pipe = self.current_pipe()
        if pipe is None or self.passed_flag:
            return False
        return BIRD_X > pipe.x

    def observe(self):
        pipe = self.current_pipe()
        if pipe is None:
            # no pipe at all: report it as far away
            return Observation(self.y, self.vy, 1.0, 0.0)
        return Observation(self.y, self.vy, pipe.x - BIRD_X, pipe.gap_y - self.y)

    def get_attr(self, attr_name):
        if attr_name == 'steps':
            return self.steps
        elif attr_name == 'done':
            return self.done
        elif attr_name == 'score':
            return self.score
        elif attr_name == 'config':
            return self.config
        elif attr_name == 'pipes':  # (x, gap_y) copies, for renderers
            return [(p.x, p.gap_y) for p in self.pipes]
        return None
