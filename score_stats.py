import os
import sys
import re
import pandas as pd
from common import trimmed_mean

# Define file paths
INPUT_PATH  = 'result/score/result.txt'
OUTPUT_PATH = 'result/score/result.csv'

LINE_PATTERN = re.compile(r'(\w+)\s+Trial_id:\s+(\w+),\s+Result:\s+([\d.]+)')


def parse_results(lines):
    records = []
    for line in lines:
        m = LINE_PATTERN.match(line.strip())
        if m:
            method, trial_id, result = m.groups()
            records.append({'method': method, 'trial_id': trial_id, 'result': float(result)})
    return records


def summarize(records):
    ''' per method: number of runs, mean, trimmed mean and best result '''
    df = pd.DataFrame(records)
    rows = []
    for method, group in df.groupby('method'):
        results = group['result'].tolist()
        rows.append({
            'method': method,
            'runs': len(results),
            'mean': round(sum(results) / len(results), 3),
            'trimmed_mean': round(trimmed_mean(results), 3),
            'best': max(results),
        })
    return pd.DataFrame(rows)


if __name__ == "__main__":
    if not os.path.isfile(INPUT_PATH):
        sys.exit(f"Error: '{INPUT_PATH}' does not exist. Run evaluate.py first.")

    with open(INPUT_PATH, 'r', encoding='utf-8') as f:
        records = parse_results(f)
    if not records:
        sys.exit(f"Error: no valid records found in '{INPUT_PATH}'.")

    summary_df = summarize(records)
    summary_df.to_csv(OUTPUT_PATH, index=False, encoding='utf-8')
    print(summary_df.to_string(index=False))
    print(f"Finished: results saved to '{OUTPUT_PATH}'.")
