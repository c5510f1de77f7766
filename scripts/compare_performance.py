"""Compares the cost of the three exact inference engines on the Asia network."""

import argparse
import logging
import sys
import os
import time
import numpy as np
import matplotlib.pyplot as plt
import pandas as pd

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from bninfer.bayesian_network import BayesianNetwork
from bninfer.inference import ENGINES, create_engine
from bninfer.utils import setup_logging

log = logging.getLogger(__name__)

QUERIES = [
    ("L", "T", {"D": "T", "A": "F"}),
    ("T", "T", {"X": "T"}),
    ("E", "T", {}),
    ("S", "T", {"X": "T", "D": "T"}),
    ("B", "T", {"S": "T"}),
    ("D", "T", {"E": "T", "B": "F"}),
]

def create_asia_network():
    """
    Creates the 'Asia' network, a classic small BN.
    A: Visit to Asia?
    S: Smoker?
    T: Tuberculosis?
    L: Lung Cancer?
    B: Bronchitis?
    E: TB or Lung Cancer? (Either)
    X: X-Ray Positive?
    D: Dyspnea (Shortness of breath)?
    """
    log.info("Creating 'Asia' network for performance comparison.")
    bn = BayesianNetwork()
    for node in ['A', 'S', 'T', 'L', 'B', 'E', 'X', 'D']:
        bn.add_node(node, ["T", "F"])

    # Structure
    bn.add_edge('A', 'T')
    bn.add_edge('S', 'L')
    bn.add_edge('S', 'B')
    bn.add_edge('T', 'E')
    bn.add_edge('L', 'E')
    bn.add_edge('E', 'X')
    bn.add_edge('E', 'D')
    bn.add_edge('B', 'D')

    # CPTs
    bn.set_cpt('A', [0.01, 0.99])
    bn.set_cpt('S', [0.5, 0.5])
    bn.set_cpt('T', [0.05, 0.95, 0.01, 0.99])
    bn.set_cpt('L', [0.1, 0.9, 0.01, 0.99])
    bn.set_cpt('B', [0.6, 0.4, 0.3, 0.7])
    # E is T or L
    bn.set_cpt('E', [1.0, 0.0,
                     1.0, 0.0,
                     1.0, 0.0,
                     0.0, 1.0])
    bn.set_cpt('X', [0.98, 0.02, 0.05, 0.95])
    bn.set_cpt('D', [0.9, 0.1,
                     0.7, 0.3,
                     0.8, 0.2,
                     0.1, 0.9])
    return bn

def format_query(query_var, value, evidence):
    if evidence:
        evidence_str = ','.join(f"{k}={v}" for k, v in evidence.items())
        return f"P({query_var}={value}|{evidence_str})"
    return f"P({query_var}={value})"

def plot_results(df):
    """Plots operation counts and times per query and saves them."""
    for column, ylabel in [("additions", "Additions"),
                           ("multiplications", "Multiplications"),
                           ("time", "Time (seconds)")]:
        pivot = df.pivot(index="query", columns="method", values=column)
        ax = pivot.plot(kind="bar", figsize=(12, 6))
        ax.set_title(f"{ylabel} per Query and Method")
        ax.set_ylabel(ylabel)
        ax.set_xlabel("")
        plt.xticks(rotation=30, ha="right")
        plt.tight_layout()
        path = f"results/performance_{column}_comparison.png"
        plt.savefig(path)
        plt.close()
        log.info(f"Saved {column} comparison plot to {path}")

def main():
    parser = argparse.ArgumentParser(description="Compare Exact Inference Method Performance")
    parser.add_argument(
        "--repeats",
        type=int,
        default=5,
        help="Number of timed runs per query and method."
    )
    parser.add_argument(
        "--draw",
        action="store_true",
        help="Also save a drawing of the network."
    )
    args = parser.parse_args()
    if args.repeats < 1:
        parser.error("--repeats must be at least 1")
    setup_logging(level=logging.WARNING)

    # Create results dir
    if not os.path.exists("results"):
        os.makedirs("results")

    bn = create_asia_network()
    if args.draw:
        bn.draw_network("results/asia_network.png")

    results = []
    for query_var, value, evidence in QUERIES:
        query_str = format_query(query_var, value, evidence)
        probabilities = []
        for method in sorted(ENGINES):
            engine = create_engine(method, bn)
            timings = []
            for _ in range(args.repeats):
                start_time = time.perf_counter()
                prob = engine.query(query_var, value, evidence)
                timings.append(time.perf_counter() - start_time)
            probabilities.append(prob)

            results.append({
                "query": query_str,
                "method": method,
                "probability": prob,
                "additions": engine.additions,
                "multiplications": engine.multiplications,
                "time": float(np.mean(timings)),
            })

        if not np.allclose(probabilities, probabilities[0], atol=1e-6, equal_nan=True):
            log.error(f"Engines disagree on {query_str}: {probabilities}")
            sys.exit(1)

    df = pd.DataFrame(results)
    print("\n--- Performance Comparison Results ---")
    print(df.to_string())

    df.to_csv("results/performance_results.csv", index=False)
    log.info("Saved full results to results/performance_results.csv")

    plot_results(df)
    print("\nComparison plots saved to 'results/' directory.")

if __name__ == "__main__":
    main()
