import random
import string
import json
import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
import seaborn as sns
import pandas as pd
import os
import shutil

SUMMARY_COLUMNS = ['trial_id', 'result', 'best_episode']


def results_frame(all_results):
    ''' one row per trial, hyperparameters flattened into columns, best trial first '''
    df = pd.DataFrame(list(all_results))
    params_df = pd.json_normalize(df['params'].tolist())
    df = pd.concat([df.drop('params', axis=1), params_df], axis=1)
    return df.sort_values('result', ascending=False, kind='stable').reset_index(drop=True)

def print_best_result(results, top=5):
    if not results:
        print("No results available.")
        return
    df = results_frame(results)
    best = df.iloc[0]
    print(f"Best trial ID: {best['trial_id']}, pipes passed: {best['result']} (episode {best['best_episode']})")
    print(df.head(top).to_string(index=False))

def save_results(results, log_dir):
    ''' all_results.json keeps the raw records (best first), all_results.csv the flattened table '''
    sorted_results = sorted(list(results), key=lambda x: x['result'], reverse=True)
    with open(f'{log_dir}/all_results.json', 'w') as f:
        json.dump(sorted_results, f, indent=2)
    if sorted_results:
        results_frame(sorted_results).to_csv(f'{log_dir}/all_results.csv', index=False)

def visualize_results(all_results, log_dir):
    if not all_results:
        return
    df = results_frame(all_results)

    os.makedirs(f'{log_dir}/fig', exist_ok=True)
    for param in df.columns.difference(SUMMARY_COLUMNS):
        plt.figure(figsize=(10, 6))
        sns.scatterplot(x=param, y='result', data=df, s=200, alpha=0.5)
        plt.title(f'Impact of {param} on pipes passed')
        plt.xticks(rotation=45)
        plt.tight_layout()
        plt.savefig(f'{log_dir}/fig/{param}_impact.png')
        plt.close()

def generate_trial_id(taken=()):
    while True:
        trial_id = ''.join(random.choices(string.ascii_letters + string.digits, k=5))
        if trial_id not in taken:
            return trial_id

def model_path(log_dir, trial_id, episode):
    ''' where train.py saves the checkpoint of a validation episode '''
    return os.path.join(log_dir, 'tensorboard', f'{trial_id}_dqn', 'models', f"{episode}.th")

def get_topk_models(log_dir: str, model_dir: str, k: int) -> list:
    ''' copy the best checkpoint of the k best trials to model_dir as <trial_id>_<episode>.th '''
    os.makedirs(model_dir, exist_ok=True)
    with open(os.path.join(log_dir, 'all_results.json'), 'r') as f:
        ranked = json.load(f)

    copied = []
    for entry in ranked[:k]:
        dst_path = os.path.join(model_dir, f"{entry['trial_id']}_{entry['best_episode']}.th")
        shutil.copy(model_path(log_dir, entry['trial_id'], entry['best_episode']), dst_path)
        copied.append(dst_path)
    return copied
