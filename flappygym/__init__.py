from .flappy_env import FlappyEnv, EnvConfig, Action, Observation, StepResult, BIRD_X
