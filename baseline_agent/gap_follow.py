''' Flap whenever the bird is under the target height and not already climbing.
    The target sits a little below the gap center, since a flap overshoots upward. '''
from flappygym import Action

def gap_follow(observation):
    cfg = gap_follow.env_config
    target_offset = 0.25 * cfg.pipe_gap               # aim below the center, flaps overshoot
    climb_limit = 0.5 * cfg.flap_impulse              # vy above this counts as climbing
    below_target = observation.dy_to_gap - target_offset > 0
    if below_target and observation.vy < climb_limit:
        return Action.FLAP
    return Action.NO_FLAP
