"""
The DQN module implements a Deep Q-Network trained on the flappy environment. Everything is plain numpy,
the network carries its own analytic backward pass. It mainly consists of the following components:

1. DQNAgent (agent.py)
2. QLearner (learner.py)
3. Network (network.py)
4. AdamOptimizer (adam.py)
5. ReplayMemory (replay_memory.py)
"""

"""
DQNAgent (agent.py)
Owns the online/target networks, the replay memory and the learner.

Initialization:
- DQNAgent(config)
    - config: DQNConfig, hyperparameters used during the training process

Use:
- agent.select_action(observation)            -> Action (epsilon-greedy, linear epsilon decay)
- agent.store_experience(s, a, r, s2, done)   -> pushes an Experience into the replay memory
- agent.train()                               -> mean squared error on the taken actions (0.0 if not enough data)
- agent.update_target_network()               -> copies online weights (and biases if sync_target_biases) to target
- agent.save_weights(path) / agent.load_weights(path)
"""

"""
QLearner (learner.py)
Samples a batch, computes bootstrapped targets with the target network, sums the per-example
gradients of the online network and applies one Adam step.

Initialization:
- QLearner(agent, config)

Use:
- learner.train(memory, batch_size)
"""

"""
Network (network.py)
- Network(layer_sizes, seed): ReLU hidden layers, linear output, Xavier-uniform weights, zero biases
- forward(x), forward_with_trace(x) -> ForwardTrace(pre_activations, activations)
- backward(x, target, predicted, trace=None) -> (weight_gradients, bias_gradients)

Data structure:
- weights[layer] : ndarray (layer_sizes[layer+1], layer_sizes[layer])  i.e. [output_neuron][input_weight]
- biases[layer]  : ndarray (layer_sizes[layer+1],)
"""

"""
ReplayMemory (replay_memory.py)
- Fixed capacity, FIFO overwrite through a circular write position once full.
- memory.push(Experience(state, action, reward, next_state, done))
- memory.sample(batch_size): batch_size distinct experiences, uniform without replacement
"""
