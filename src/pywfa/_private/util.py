import math
import subprocess


def check_graphviz_installed():
    try:
        subprocess.run(["dot", "-V"], check=True, stdout=subprocess.PIPE, stderr=subprocess.PIPE)
        return True
    except (subprocess.CalledProcessError, FileNotFoundError):
        return False


def log_sum_exp(a, b):
    """log(exp(a) + exp(b)) without leaving the log domain."""
    if a == -math.inf:
        return b
    if b == -math.inf:
        return a
    if a == math.inf or b == math.inf:
        return math.inf
    m = max(a, b)
    return m + math.log1p(math.exp(-abs(a - b)))


def log_sum_exp_all(values) -> float:
    """log-sum-exp of an iterable of log values; -inf for an empty iterable."""
    values = [v for v in values if v != -math.inf]
    if not values:
        return -math.inf
    m = max(values)
    if m == math.inf:
        return math.inf
    return m + math.log(sum(math.exp(v - m) for v in values))


def cluster_values(values, tolerance) -> dict:
    """Map each float to a class number; sorted values closer than `tolerance`
       to the first member of a class share it. Infinities get classes of their own."""
    classes = {}
    cntr, start = -1, None
    for v in sorted(set(values)):
        if math.isinf(v) or start is None or math.isinf(start) or v - start > tolerance:
            cntr += 1
            start = v
        classes[v] = cntr
    return classes


def cluster_distributions(distributions, tolerance) -> list:
    """Greedily assign class numbers to distributions: a distribution joins the
       first class whose representative it equals within `tolerance`."""
    representatives = []
    classes = []
    for d in distributions:
        for i, rep in enumerate(representatives):
            if d is rep or d.equals(rep, tolerance):
                classes.append(i)
                break
        else:
            classes.append(len(representatives))
            representatives.append(d)
    return classes
