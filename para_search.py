''' Hyperparameter Search '''
import random
import subprocess
import json
import os
import signal
import sys
from datetime import datetime
from multiprocessing import Pool, Manager
from para_search_func import generate_trial_id, print_best_result, save_results, visualize_results, get_topk_models

def run_experiment(args):
    params, trial_id, log_dir, profile = args
    cmd = [
        sys.executable, "train.py",
        "--profile", profile,
        "--layer_no", str(params['layer_no']),
        "--width", str(params['width']),
        "--lr", str(params['lr']),
        "--trial_id", trial_id,
        "--log_dir", log_dir
    ]
    # Run the experiment, train.py writes the result file before exiting
    subprocess.run(cmd, check=True)

    result_file = f'{log_dir}/result/{trial_id}.json'
    with open(result_file, 'r') as f:
        result = json.load(f)
    # Add hyperparameters to the result and save back to the file
    result['params'] = params
    with open(result_file, 'w') as f:
        json.dump(result, f, indent=2)

    return {
        'trial_id': trial_id,
        'params': params,
        'result': result['result'],
        'best_episode': result['best_episode'],
    }

def main():
    # Define the hyperparameter space
    param_space = {
        'layer_no': [1, 2, 3],
        'width': [16, 32, 64, 128],
        'lr': [0.0001, 0.0003, 0.001]
    }
    # Total trials and number of concurrent trials
    total_trials = 36
    concurrent_trials = 6
    profile = 'fast'

    # Create log directory
    formatted_time = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_dir = f'log_para_{formatted_time}'
    os.makedirs(f'{log_dir}/result', exist_ok=True)

    # Generate all trial configurations (random combination)
    all_trials, taken = [], set()
    for _ in range(total_trials):
        params = {k: random.choice(v) for k, v in param_space.items()}
        trial_id = generate_trial_id(taken)
        taken.add(trial_id)
        all_trials.append((params, trial_id, log_dir, profile))

    manager = Manager()
    results = manager.list()

    # Signal handler for interruption
    def signal_handler(signum, frame):
        print("Interrupt received, terminating all running trials...")
        pool.terminate()
        pool.join()
        print_best_result(results)
        visualize_results(list(results), log_dir)
        save_results(results, log_dir)
        sys.exit(0)
    signal.signal(signal.SIGINT, signal_handler)

    # Parallel processing
    with Pool(processes=concurrent_trials) as pool:
        try:
            for result in pool.imap_unordered(run_experiment, all_trials):
                results.append(result)
        except KeyboardInterrupt:
            print("KeyboardInterrupt caught in main loop")
            pool.terminate()
        finally:
            pool.close()
            pool.join()

    # Process results
    print_best_result(results)
    visualize_results(list(results), log_dir)
    save_results(results, log_dir)
    get_topk_models(log_dir, 'models', 3)


if __name__ == "__main__":
    main()
