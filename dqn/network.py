from typing import List, NamedTuple

import numpy as np
import torch as th

from dqn.errors import InvalidArgumentError, ShapeMismatchError


class ForwardTrace(NamedTuple):
    pre_activations: List[np.ndarray]   # z of every layer
    activations: List[np.ndarray]       # input, then post-activation of every layer


def relu(x):
    return np.maximum(x, 0.0)


def relu_derivative(x):
    return (x > 0.0).astype(np.float32)


def as_param(value, name):
    try:
        return np.array(value, dtype=np.float32)
    except ValueError as e:  # ragged nesting
        raise ShapeMismatchError(f"{name} structure mismatch: {e}") from e


def xavier_uniform(rng, fan_in, fan_out):
    limit = np.sqrt(6.0 / (fan_in + fan_out))
    return rng.uniform(-limit, limit, size=(fan_out, fan_in)).astype(np.float32)


class Network:
    '''
    Fully-connected feed-forward network: ReLU on hidden layers, linear output.
    Layer i has weights of shape (layer_sizes[i+1], layer_sizes[i]), i.e. [output_neuron][input_weight].
    '''

    def __init__(self, layer_sizes, seed=12345):
        layer_sizes = [int(n) for n in layer_sizes]
        if len(layer_sizes) < 2:
            raise InvalidArgumentError("Network needs at least input and output layers")
        if any(n <= 0 for n in layer_sizes):
            raise InvalidArgumentError(f"Layer sizes must be positive, got {layer_sizes}")
        self.layer_sizes = layer_sizes
        self.rng = np.random.default_rng(seed)
        self.initialize_weights()

    def initialize_weights(self):
        self.weights = []
        self.biases = []
        for fan_in, fan_out in zip(self.layer_sizes[:-1], self.layer_sizes[1:]):
            self.weights.append(xavier_uniform(self.rng, fan_in, fan_out))
            self.biases.append(np.zeros(fan_out, dtype=np.float32))

    @property
    def num_layers(self):
        return len(self.weights)

    def _check_input(self, x):
        x = np.asarray(x, dtype=np.float32)
        if x.shape != (self.layer_sizes[0],):
            raise InvalidArgumentError(
                f"Input size mismatch: expected {self.layer_sizes[0]}, got {x.shape}")
        return x

    def forward(self, x):
        return self.forward_with_trace(x).activations[-1]

    def forward_with_trace(self, x):
        a = self._check_input(x)
        pre_activations, activations = [], [a]
        last = self.num_layers - 1
        for layer, (W, b) in enumerate(zip(self.weights, self.biases)):
            z = W @ a + b
            a = relu(z) if layer < last else z
            pre_activations.append(z)
            activations.append(a)
        return ForwardTrace(pre_activations, activations)

    def backward(self, x, target, predicted, trace=None):
        '''
        Per-example gradient of 0.5 * ||predicted - target||^2.
        `trace` should come from forward_with_trace(x); it is recomputed when omitted.
        Returns (weight_gradients, bias_gradients) shaped like the parameters.
        '''
        if trace is None:
            trace = self.forward_with_trace(x)
        target = np.asarray(target, dtype=np.float32)
        predicted = np.asarray(predicted, dtype=np.float32)

        weight_gradients = [None] * self.num_layers
        bias_gradients = [None] * self.num_layers
        delta = predicted - target
        for layer in range(self.num_layers - 1, -1, -1):
            prev_activation = trace.activations[layer]
            bias_gradients[layer] = delta.copy()
            weight_gradients[layer] = np.outer(delta, prev_activation)
            if layer > 0:
                # layer-1 is always hidden, so ReLU'(z) applies
                delta = (self.weights[layer].T @ delta) * relu_derivative(trace.pre_activations[layer - 1])
        return weight_gradients, bias_gradients

    def update_weights(self, weight_gradients, bias_gradients, learning_rate):
        for layer in range(self.num_layers):
            self.weights[layer] -= learning_rate * np.asarray(weight_gradients[layer], dtype=np.float32)
            self.biases[layer] -= learning_rate * np.asarray(bias_gradients[layer], dtype=np.float32)

    def get_weights(self):
        return [W.copy() for W in self.weights]

    def get_biases(self):
        return [b.copy() for b in self.biases]

    def set_weights(self, weights):
        if len(weights) != self.num_layers:
            raise ShapeMismatchError("Weight structure mismatch")
        new_weights = [as_param(W, "Weight") for W in weights]
        for new, old in zip(new_weights, self.weights):
            if new.shape != old.shape:
                raise ShapeMismatchError(f"Weight structure mismatch: {new.shape} vs {old.shape}")
        self.weights = new_weights

    def set_biases(self, biases):
        if len(biases) != self.num_layers:
            raise ShapeMismatchError("Bias structure mismatch")
        new_biases = [as_param(b, "Bias") for b in biases]
        for new, old in zip(new_biases, self.biases):
            if new.shape != old.shape:
                raise ShapeMismatchError(f"Bias structure mismatch: {new.shape} vs {old.shape}")
        self.biases = new_biases

    def get_num_parameters(self):
        return int(sum(W.size + b.size for W, b in zip(self.weights, self.biases)))

    def state_dict(self):
        state = {'layer_sizes': list(self.layer_sizes)}
        for i, (W, b) in enumerate(zip(self.weights, self.biases)):
            state[f'weight.{i}'] = th.from_numpy(W.copy())
            state[f'bias.{i}'] = th.from_numpy(b.copy())
        return state

    def load_state_dict(self, state):
        if list(state['layer_sizes']) != self.layer_sizes:
            raise ShapeMismatchError(
                f"Stored layer sizes {list(state['layer_sizes'])} do not match {self.layer_sizes}")
        self.set_weights([state[f'weight.{i}'].numpy() for i in range(self.num_layers)])
        self.set_biases([state[f'bias.{i}'].numpy() for i in range(self.num_layers)])
