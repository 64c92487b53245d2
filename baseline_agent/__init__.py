from .gap_follow import gap_follow
from .random_flap import random_flap
from .never_flap import never_flap

get_policy_funcs = [gap_follow, random_flap, never_flap]

def get_policy(index, env_config, seed=0):
    policy = get_policy_funcs[index]
    policy.env_config = env_config
    seed_fn = getattr(policy, 'seed', None)   # only stochastic policies carry a seed
    if seed_fn is not None:
        seed_fn(seed)
    return policy

"""
Collection of scripted flappy policies, used as reference scores for the learned agent.

Usage:
    from baseline_agent import get_policy
    policy = get_policy(index, env_config, seed)
    action = policy(observation)

    index: 0 = gap_follow, 1 = random_flap, 2 = never_flap

Output of `policy`: an Action (NO_FLAP or FLAP).

Input of `policy`: an Observation (y, vy, dx_to_pipe, dy_to_gap)
    - dy_to_gap > 0 means the gap center is above the bird.
"""
