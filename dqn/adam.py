import numpy as np


class AdamOptimizer:
    ''' Adam over a network's per-layer weight matrices and bias vectors; parameters are updated in place. '''

    def __init__(self, learning_rate=0.001, beta1=0.9, beta2=0.999, epsilon=1e-8):
        self.learning_rate = learning_rate
        self.beta1 = beta1
        self.beta2 = beta2
        self.epsilon = epsilon
        self.reset()

    def initialize_state(self, weights, biases):
        # Moments are shaped after whatever parameters the first update sees
        self.m_weights = [np.zeros_like(W, dtype=np.float32) for W in weights]
        self.v_weights = [np.zeros_like(W, dtype=np.float32) for W in weights]
        self.m_biases = [np.zeros_like(b, dtype=np.float32) for b in biases]
        self.v_biases = [np.zeros_like(b, dtype=np.float32) for b in biases]

    def update(self, weights, biases, weight_gradients, bias_gradients):
        if self.step == 0:
            self.initialize_state(weights, biases)
        self.step += 1

        # Bias correction factors
        correction1 = 1.0 - self.beta1 ** self.step
        correction2 = 1.0 - self.beta2 ** self.step

        for layer in range(len(weights)):
            self._apply(weights[layer], weight_gradients[layer], self.m_weights[layer], self.v_weights[layer],
                        correction1, correction2)
            self._apply(biases[layer], bias_gradients[layer], self.m_biases[layer], self.v_biases[layer],
                        correction1, correction2)

    def _apply(self, param, grad, m, v, correction1, correction2):
        grad = np.asarray(grad, dtype=np.float32)
        m *= self.beta1
        m += (1.0 - self.beta1) * grad
        v *= self.beta2
        v += (1.0 - self.beta2) * grad * grad
        m_hat = m / correction1
        v_hat = v / correction2
        param -= (self.learning_rate * m_hat / (np.sqrt(v_hat) + self.epsilon)).astype(param.dtype)

    def reset(self):
        self.step = 0
        self.m_weights, self.v_weights = [], []
        self.m_biases, self.v_biases = [], []

    def get_step(self):
        return self.step
