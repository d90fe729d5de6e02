"""Benchmark the RxSO2 object API against the zero-allocation numba kernels.

Compares compose, exp/log, interpolation and point action.
"""

import time
import timeit

import numpy as np

N_MUL = 20000
N_EXP_LOG = 20000
N_INTERP = 10000
N_POINTS = 1000


def bench_import():
    t0 = time.perf_counter()
    import rxsolie  # noqa: F401
    return time.perf_counter() - t0


def make_random_tangents(n, rng):
    tangents = np.zeros((n, 2))
    tangents[:, 0] = rng.uniform(-2.0, 2.0, n)
    tangents[:, 1] = rng.uniform(-np.pi, np.pi, n)
    return tangents


def bench_objects():
    from rxsolie import RxSO2

    rng = np.random.default_rng(42)
    tangents = make_random_tangents(max(N_MUL, N_EXP_LOG, N_INTERP), rng)
    elements = [RxSO2.exp(t) for t in tangents[:N_MUL]]
    points = rng.standard_normal((N_POINTS, 2))

    results = {}

    def run_mul():
        acc = RxSO2()
        for g in elements:
            acc = acc * g
    results["mul"] = timeit.timeit(run_mul, number=1)

    def run_exp_log():
        for i in range(N_EXP_LOG):
            RxSO2.exp(tangents[i]).log()
    results["exp_log"] = timeit.timeit(run_exp_log, number=1)

    def run_interp():
        for i in range(N_INTERP):
            RxSO2.interpolate(elements[0], elements[i % N_MUL], 0.5)
    results["interp"] = timeit.timeit(run_interp, number=1)

    def run_act():
        elements[1].act(points)
    results["batch_act"] = timeit.timeit(run_act, number=1)

    return results


def bench_kernels():
    from rxsolie import (
        batch_rxso2_act,
        max_log_scale,
        min_scale,
        rxso2_exp,
        rxso2_identity,
        rxso2_interp,
        rxso2_log,
        rxso2_mul,
        warmup_numba_rxso2,
    )

    warmup_numba_rxso2()
    floor = min_scale(np.float64)
    max_log = max_log_scale(np.float64)

    rng = np.random.default_rng(42)
    tangents = make_random_tangents(max(N_MUL, N_EXP_LOG, N_INTERP), rng)
    elements = np.zeros((N_MUL, 2))
    for i in range(N_MUL):
        rxso2_exp(tangents[i], floor, max_log, elements[i])
    points = rng.standard_normal((N_POINTS, 2))
    points_out = np.zeros_like(points)

    z = np.zeros(2, dtype=np.float64)
    t_out = np.zeros(2, dtype=np.float64)

    results = {}

    def run_mul():
        rxso2_identity(z)
        for i in range(N_MUL):
            rxso2_mul(z, elements[i], floor, z)
    results["mul"] = timeit.timeit(run_mul, number=1)

    def run_exp_log():
        for i in range(N_EXP_LOG):
            rxso2_exp(tangents[i], floor, max_log, z)
            rxso2_log(z, t_out)
    results["exp_log"] = timeit.timeit(run_exp_log, number=1)

    def run_interp():
        for i in range(N_INTERP):
            rxso2_interp(elements[0], elements[i % N_MUL], 0.5, floor, z)
    results["interp"] = timeit.timeit(run_interp, number=1)

    def run_act():
        batch_rxso2_act(elements[1], points, points_out)
    results["batch_act"] = timeit.timeit(run_act, number=1)

    return results


def format_time(seconds, n_ops):
    """Format as time per operation."""
    us_per_op = (seconds / n_ops) * 1e6
    if us_per_op >= 1000:
        return f"{us_per_op / 1000:.2f} ms"
    return f"{us_per_op:.2f} us"


def main():
    print("=" * 70)
    print("rxsolie: object API vs numba kernels")
    print("=" * 70)
    print()

    print("--- Import time ---")
    print(f"  rxsolie:  {bench_import()*1000:.0f} ms")
    print()

    counts = {"mul": N_MUL, "exp_log": N_EXP_LOG, "interp": N_INTERP, "batch_act": 1}

    obj = bench_objects()
    print(f"--- RxSO2 objects ({N_MUL} mul, {N_EXP_LOG} exp+log, {N_INTERP} interp, {N_POINTS} points) ---")
    for key, n in counts.items():
        print(f"  {key:10s}: {format_time(obj[key], n)}/call  (total {obj[key]:.3f}s)")
    print()

    kern = bench_kernels()
    print(f"--- numba kernels ({N_MUL} mul, {N_EXP_LOG} exp+log, {N_INTERP} interp, {N_POINTS} points) ---")
    for key, n in counts.items():
        print(f"  {key:10s}: {format_time(kern[key], n)}/call  (total {kern[key]:.3f}s)")
    print()

    print("--- Speedup (kernels / objects) ---")
    for key in counts:
        ratio = obj[key] / kern[key]
        label = key.upper().replace("_", " ")
        print(f"  {label:10s}: {ratio:.2f}x {'faster' if ratio > 1 else 'slower'}")
    print()


if __name__ == "__main__":
    main()
