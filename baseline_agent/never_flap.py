''' Lower bound: falls from the start height into the floor '''
from flappygym import Action

def never_flap(observation):
    return Action.NO_FLAP
