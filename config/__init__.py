import os
import yaml

from flappygym import EnvConfig
from dqn.agent import DQNConfig

class ConfigError(Exception):
    pass

def merge(base, override):
    ''' merge nested sections key by key, override wins '''
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            merge(base[key], value)
        else:
            base[key] = value
    return base

def load_config(profile):
    res = None
    for path in config_file_paths(profile):
        if os.path.isfile(path):
            with open(path, 'r', encoding='utf-8') as config:
                new_config = yaml.safe_load(config) or {}
            if res is None:
                res = new_config
            else:
                merge(res, new_config)
    if res is None:
        raise ConfigError(f"Configuration for profile '{profile}' not found.")
    return res

def config_file_paths(profile):
    """Generate possible config file paths."""
    base_dir = os.path.dirname(__file__)
    paths = [os.path.join(base_dir, 'default.yaml')]
    if profile:
        paths.append(os.path.join(base_dir, 'envs', f'{profile}.yaml'))
    return paths


class Config:
    def __init__(self, profile=None):
        config = load_config(profile)
        self.env = config.get('env', {})
        self.dqn = config.get('dqn', {})
        self.train = config.get('train', {})
        self.profile = profile

    def env_config(self):
        return EnvConfig(**self.env)

    def dqn_config(self):
        return DQNConfig(**self.dqn)

    def to_dict(self):
        return {'profile': self.profile, 'env': self.env, 'dqn': self.dqn, 'train': self.train}
