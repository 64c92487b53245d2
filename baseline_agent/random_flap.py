''' Random '''
import numpy as np
from flappygym import Action

def random_flap(observation):
    return Action.FLAP if random_flap.rng.random() < random_flap.flap_prob else Action.NO_FLAP

def _seed(seed):
    random_flap.rng = np.random.default_rng(seed)

random_flap.flap_prob = 0.1   # flapping half the time sends the bird into the ceiling
random_flap.seed = _seed
random_flap.seed(0)
