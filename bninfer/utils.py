import logging
import os
import zlib

# --- Logging Setup ---

def setup_logging(level=logging.INFO, log_dir="logs"):
    """Configures logging to file and console."""
    if not os.path.exists(log_dir):
        os.makedirs(log_dir)

    log_file = os.path.join(log_dir, "app.log")

    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] [%(name)s] - %(message)s",
        handlers=[
            logging.FileHandler(log_file),
            logging.StreamHandler()
        ]
    )
    logging.getLogger("matplotlib").setLevel(logging.WARNING)
    logging.getLogger("networkx").setLevel(logging.WARNING)

# --- Deterministic ordering keys ---

def ascii_sum(names):
    """Sum of the character codes of every character in every name."""
    return sum(ord(ch) for name in names for ch in name)

def stable_hash(name):
    """
    Hash of a variable name that is identical across interpreter runs,
    unlike the per-process salted builtin hash().
    """
    return zlib.crc32(name.encode("utf-8"))
