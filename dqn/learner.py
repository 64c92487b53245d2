import numpy as np

from dqn.adam import AdamOptimizer


def to_input(observation):
    return np.asarray(observation, dtype=np.float32)


class QLearner:
    def __init__(self, agent, config):
        self.config    = config
        self.agent     = agent
        self.optimizer = AdamOptimizer(config.learning_rate, config.adam_beta1,
                                       config.adam_beta2, config.adam_epsilon)
        self.learn_cnt = 0

    def compute_target(self, experience):
        ''' bootstrapped target for the taken action, using the target network '''
        if experience.done:
            return float(experience.reward)
        next_q_values = self.agent.target_net.forward(to_input(experience.next_state))
        return float(experience.reward + self.config.gamma * np.max(next_q_values))

    def compute_targets(self, batch):
        return [self.compute_target(experience) for experience in batch]

    def train(self, memory, batch_size):
        if not memory.can_sample(batch_size):
            return 0.0

        batch   = memory.sample(batch_size)
        targets = self.compute_targets(batch)
        net     = self.agent.online_net

        # Gradient accumulators shaped like the online network
        total_weight_gradients = [np.zeros_like(W) for W in net.weights]
        total_bias_gradients   = [np.zeros_like(b) for b in net.biases]

        total_loss = 0.0
        for experience, target_q in zip(batch, targets):
            x = to_input(experience.state)
            trace = net.forward_with_trace(x)
            predicted_q = trace.activations[-1]

            # Untaken action keeps its current prediction, so its error is zero
            action_idx = int(experience.action)
            target_q_values = predicted_q.copy()
            target_q_values[action_idx] = target_q
            total_loss += float((predicted_q[action_idx] - target_q) ** 2)

            weight_gradients, bias_gradients = net.backward(x, target_q_values, predicted_q, trace)
            for layer in range(net.num_layers):
                total_weight_gradients[layer] += weight_gradients[layer]
                total_bias_gradients[layer]   += bias_gradients[layer]

        if self.config.average_gradients:
            total_weight_gradients = [g / len(batch) for g in total_weight_gradients]
            total_bias_gradients   = [g / len(batch) for g in total_bias_gradients]

        # Adam step on copies, written back through the shape-checked setters
        weights, biases = net.get_weights(), net.get_biases()
        self.optimizer.update(weights, biases, total_weight_gradients, total_bias_gradients)
        net.set_weights(weights)
        net.set_biases(biases)

        self.learn_cnt += 1
        return total_loss / len(batch)
