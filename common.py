'''
储存常见功能
'''


def linear_decay(step, max_step, eps_start, eps_end):
    ''' linear schedule from eps_start to eps_end over max_step steps, clamped afterwards (no steps means already at eps_end) '''
    progress = 1.0 if max_step <= 0 else min(1.0, step / max_step)
    return eps_start + (eps_end - eps_start) * progress

def time_format(seconds):
    ''' seconds -> (hours, minutes, seconds) '''
    minutes, seconds = divmod(seconds, 60)
    hours, minutes = divmod(minutes, 60)
    return hours, minutes, seconds

def trimmed_mean(data, percentage=0.1):
    ''' mean after dropping the lowest and the highest `percentage` of the values '''
    values = sorted(data)
    if not values:
        raise ValueError("Cannot average an empty sequence")
    if not 0 <= percentage < 0.5:
        raise ValueError(f"percentage must be in [0, 0.5), got {percentage}")

    cut = int(len(values) * percentage)
    kept = values[cut:len(values) - cut]
    return sum(kept) / len(kept)
