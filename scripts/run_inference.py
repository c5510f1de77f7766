import argparse
import logging
import sys
import os

# Add the project root to path
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from bninfer.bayesian_network import BayesianNetwork
from bninfer.exceptions import InferenceError
from bninfer.inference import ENGINES, create_engine
from bninfer.utils import setup_logging

log = logging.getLogger(__name__)

def create_example_network():
    """Creates the classic burglary/alarm network with T/F outcomes."""
    bn = BayesianNetwork()
    for node in ["B", "E", "A", "J", "M"]:
        bn.add_node(node, ["T", "F"])

    bn.add_edge("B", "A")
    bn.add_edge("E", "A")
    bn.add_edge("A", "J")
    bn.add_edge("A", "M")

    # Own outcome changes fastest, then the last parent
    bn.set_cpt("B", [0.001, 0.999])
    bn.set_cpt("E", [0.002, 0.998])
    bn.set_cpt("A", [0.95, 0.05,     # B=T, E=T
                     0.94, 0.06,     # B=T, E=F
                     0.29, 0.71,     # B=F, E=T
                     0.001, 0.999])  # B=F, E=F
    bn.set_cpt("J", [0.9, 0.1, 0.05, 0.95])
    bn.set_cpt("M", [0.7, 0.3, 0.01, 0.99])

    log.info("Example network created.")
    return bn

def parse_dict_str(s):
    """Parses a string 'k1:v1,k2:v2' into a dict {k1: v1, k2: v2}."""
    if not s:
        return {}
    try:
        return {item.split(':')[0].strip(): item.split(':')[1].strip() for item in s.split(',')}
    except IndexError as e:
        log.error(f"Could not parse evidence string: {s}. Error: {e}")
        log.error("Expected format: 'Node1:T,Node2:F'")
        sys.exit(1)

def main():
    parser = argparse.ArgumentParser(description="Run Exact Inference on Bayesian Network")
    parser.add_argument(
        "--query",
        type=str,
        required=True,
        help="Query variable. e.g., 'B'"
    )
    parser.add_argument(
        "--value",
        type=str,
        default="T",
        help="Outcome of the query variable. e.g., 'T'"
    )
    parser.add_argument(
        "--evidence",
        type=str,
        default="",
        help="Evidence variables and values. e.g., 'J:T,M:T'"
    )
    parser.add_argument(
        "--method",
        type=str,
        choices=sorted(ENGINES),
        default="ve",
        help="Inference method to use."
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity."
    )
    parser.add_argument(
        "--draw",
        type=str,
        default=None,
        help="Optional path to save a drawing of the network."
    )

    args = parser.parse_args()
    setup_logging(level=getattr(logging, args.log_level))

    bn = create_example_network()
    if args.draw:
        bn.draw_network(args.draw)

    evidence = parse_dict_str(args.evidence)
    try:
        engine = create_engine(args.method, bn)
        prob = engine.query(args.query, args.value, evidence)
        additions, multiplications = engine.additions, engine.multiplications
        posterior = engine.distribution(args.query, evidence)
    except InferenceError as e:
        log.error(f"Query failed: {e}")
        sys.exit(1)

    print(f"\n--- {args.method} Result ---")
    print(f"P({args.query}={args.value} | {evidence}) = {prob:.5f}")
    print(f"  additions={additions}, multiplications={multiplications}")
    print("Posterior:")
    for value, p in posterior.items():
        print(f"  {args.query}={value}: {p:.6f}")

if __name__ == "__main__":
    main()
