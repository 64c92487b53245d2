import os
os.environ['OMP_NUM_THREADS'] = '1'
os.environ['MKL_NUM_THREADS'] = '1'
os.environ['OPENBLAS_NUM_THREADS'] = '1'

import glob
import argparse
import numpy as np
from tqdm import trange
from flappygym import FlappyEnv
from dqn.agent import DQNAgent
from baseline_agent import get_policy
from common import trimmed_mean
from config import Config

TEST_SEED = 200000   # disjoint from the training and validation seeds


def run_test(env, seed, act, max_steps):
    ''' # Interact with the environment, return (pipes passed, total reward) '''
    state = env.reset(seed)
    tot_reward = 0.0
    done = False
    while not done and not (max_steps and env.steps >= max_steps):
        state, reward, done = env.step(act(state))
        tot_reward += reward
    return env.score, tot_reward


def testing(env, act, test_num, max_steps):
    scores = []
    for i in trange(test_num):
        score, _ = run_test(env, TEST_SEED + i, act, max_steps)
        scores.append(score)
    return scores


def main(sp: argparse.Namespace):
    '1. Hyperparameters'
    args = Config(sp.profile)
    if sp.width is not None and sp.layer_no is not None:
        args.dqn['layer_sizes'] = [4] + [sp.width] * sp.layer_no + [2]
    env = FlappyEnv(TEST_SEED, args.env_config())
    max_steps = args.train['max_episode_steps']

    '2. Policy'
    if sp.baseline is not None:
        act = get_policy(sp.baseline, env.config, seed=TEST_SEED)
        name = act.__name__
    else:
        agent = DQNAgent(args.dqn_config())
        if sp.model_path:
            model_path = sp.model_path
        else:
            matching_files = glob.glob(os.path.join('models', f"{sp.trial_id}_*.th"))
            if not matching_files:
                raise FileNotFoundError(f"No model found for trial '{sp.trial_id}' under models/")
            model_path = matching_files[0]  # Use the first matching file if multiple exist
        agent.load_weights(model_path)
        name = sp.method

        def act(state):
            return agent.select_action(state, epsilon=0.0)

    '3. Testing'
    return name, testing(env, act, sp.test_num, max_steps)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description='Greedy evaluation of a trained model or a baseline policy')
    parser.add_argument('--profile', type=str, default=None)
    parser.add_argument('--method', type=str, default='dqn', help='label written to the result file')
    parser.add_argument('--trial_id', type=str, default='flappy')
    parser.add_argument('--model_path', type=str, default=None)
    parser.add_argument('--layer_no', type=int, default=None)
    parser.add_argument('--width', type=int, default=None)
    parser.add_argument('--baseline', type=int, default=None, help='0 gap_follow, 1 random_flap, 2 never_flap')
    parser.add_argument('--test_num', type=int, default=200)
    sp = parser.parse_args()

    # Run
    name, scores = main(sp)
    mean_score = trimmed_mean(scores)

    # Store results
    print(f"{name} Trial_id: {sp.trial_id}, Result: {mean_score}")
    os.makedirs('result/score', exist_ok=True)
    with open('result/score/result.txt', 'a') as file:
        file.write(f'{name} Trial_id: {sp.trial_id}, Result: {mean_score} \n')
    np.savetxt(f'result/score/{name}_{sp.trial_id}.txt', np.array(scores), fmt='%d')
