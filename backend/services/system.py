import os

import psutil


def log_mem(msg: str):
    """Log RSS memory usage in MB with a short message.

    Args:
        msg: Context string to prefix the memory log.
    """
    process = psutil.Process(os.getpid())
    mem_mb = process.memory_info().rss / 1024**2
    print(f"{msg} - Memory usage: {mem_mb:.2f} MB")
