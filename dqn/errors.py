class ShapeMismatchError(ValueError):
    ''' Weights/biases passed to a network do not match its layer sizes '''


class InvalidArgumentError(ValueError):
    ''' Bad network construction argument or wrong-length input '''


class InsufficientDataError(ValueError):
    ''' More transitions requested than the replay memory holds '''
