import os
# Keep numpy single-threaded so parallel trials of the hyperparameter search don't fight over cores
os.environ['OMP_NUM_THREADS'] = '1'
os.environ['MKL_NUM_THREADS'] = '1'
os.environ['OPENBLAS_NUM_THREADS'] = '1'
os.environ['VECLIB_MAXIMUM_THREADS'] = '1'
os.environ['NUMEXPR_NUM_THREADS'] = '1'

import json
import time
import argparse
import numpy as np
from runx.logx import logx
from flappygym import FlappyEnv
from dqn.agent import DQNAgent
from baseline_agent import get_policy
from common import trimmed_mean, time_format
from config import Config


def run_episode(env, seed, act, agent=None, max_steps=0, train_state=None):
    ''' Play one episode. With an agent, experiences are stored and the train/sync cadence is applied. '''
    state = env.reset(seed)
    tot_reward = 0.0
    losses = []
    done = False
    while not done:
        action = act(state)
        state2, reward, done = env.step(action)
        tot_reward += reward

        if agent is not None:
            agent.store_experience(state, action, reward, state2, done)
            train_state['step'] += 1
            if train_state['step'] % agent.config.train_frequency == 0:
                losses.append(agent.train())
            if train_state['step'] % agent.config.target_update_frequency == 0:
                agent.update_target_network()
        state = state2

        if max_steps and env.steps >= max_steps:
            break

    mean_loss = float(np.mean(losses)) if losses else 0.0
    return tot_reward, env.score, mean_loss


def validate(env, act, args):
    ''' greedy episodes on fixed seeds, returns (trimmed mean of pipes passed, trimmed mean of reward) '''
    scores, rewards = [], []
    for j in range(args.train['valid_num']):
        reward, score, _ = run_episode(env, args.train['valid_seed'] + j, act,
                                       max_steps=args.train['max_episode_steps'])
        scores.append(score)
        rewards.append(reward)
    return trimmed_mean(scores), trimmed_mean(rewards)


def main(sp: argparse.Namespace):
    '1. Hyperparameters'
    args = Config(sp.profile)
    if sp.lr is not None:
        args.dqn['learning_rate'] = sp.lr
    if sp.width is not None and sp.layer_no is not None:
        args.dqn['layer_sizes'] = [4] + [sp.width] * sp.layer_no + [2]
    if sp.episodes is not None:
        args.train['episodes'] = sp.episodes
    if sp.seed is not None:
        args.dqn['seed'] = sp.seed

    env_config = args.env_config()
    dqn_config = args.dqn_config()
    logpath = os.path.join(sp.log_dir, 'tensorboard', f"{sp.trial_id}_dqn")

    '2. Preparation'
    logx.initialize(logdir=logpath, coolname=True, tensorboard=True)
    logx.msg(f"logpath ({logpath}) created")

    env = FlappyEnv(args.train['base_seed'], env_config)
    agent = DQNAgent(dqn_config)
    baseline = get_policy(0, env_config)

    args_dict = args.to_dict()
    args_dict['trial_id'] = sp.trial_id
    args_dict['num_parameters'] = agent.online_net.get_num_parameters()
    file_path = f"{logpath}/args.json"
    os.makedirs(os.path.dirname(file_path), exist_ok=True)
    with open(file_path, 'w') as file:
        file.write(json.dumps(args_dict, indent=4))

    baseline_score, _ = validate(env, baseline, args)
    logx.msg(f"gap_follow baseline score: {baseline_score:.2f}")

    def greedy(state):
        return agent.select_action(state, epsilon=0.0)

    '3. Online training'
    train_state = {'step': 0}
    best_result = -1.0
    best_episode = 0
    same_result_count = 0
    last_result = None
    start = time.time()
    for episode in range(args.train['episodes']):
        tot_reward, score, loss = run_episode(env, args.train['base_seed'] + episode, agent.select_action,
                                              agent, args.train['max_episode_steps'], train_state)
        logx.metric('train', {'eps': agent.get_epsilon(), 'tot_reward': tot_reward, 'score': score,
                              'loss': loss, 'memory': len(agent.memory)}, episode)

        # Validation phase
        if episode % args.train['valid_interval'] == 0:
            result, val_reward = validate(env, greedy, args)
            logx.metric('val', {'score': result, 'tot_reward': val_reward,
                                'baseline_diff': result - baseline_score}, episode)
            agent.save_weights(f'{logpath}/models/{episode}.th')

            if best_result < result:
                best_result = result
                best_episode = episode
            h, m, s = time_format(int(time.time() - start))
            logx.msg(f"episode {episode}: val score {result:.2f} (best {best_result:.2f} @ {best_episode}), "
                     f"eps {agent.get_epsilon():.3f}, elapsed {h:02d}:{m:02d}:{s:02d}")

            same_result_count = same_result_count + 1 if result == last_result else 0
            last_result = result
            # Early stopping if the result is the same for three consecutive validations
            if same_result_count >= 3:
                break

    return best_result, best_episode


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description='Train a DQN agent on the flappy environment')
    parser.add_argument('--profile', type=str, default=None, help='config/envs/<profile>.yaml overrides')
    parser.add_argument('--lr', type=float, default=None)
    parser.add_argument('--layer_no', type=int, default=None, help='number of hidden layers')
    parser.add_argument('--width', type=int, default=None, help='hidden layer width')
    parser.add_argument('--episodes', type=int, default=None)
    parser.add_argument('--seed', type=int, default=None)
    parser.add_argument('--trial_id', type=str, default='flappy')
    parser.add_argument('--log_dir', type=str, default='log')
    sp = parser.parse_args()

    # Run
    result, best_episode = main(sp)
    print(f"Trial ID: {sp.trial_id}, Result: {result}, Best Episode: {best_episode}")

    # Store results
    os.makedirs(f'{sp.log_dir}/result', exist_ok=True)
    with open(f'{sp.log_dir}/result/{sp.trial_id}.json', 'w') as f:
        json.dump({'trial_id': sp.trial_id, 'result': result, 'best_episode': best_episode}, f)
