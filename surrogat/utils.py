"""
Utility functions for ID generation and timestamps
"""
import random
import string
import time


def generate_client_id(length: int = 7) -> str:
    """Generate a temporary connection ID"""
    alphabet = string.ascii_lowercase + string.digits
    return "c_" + "".join(random.choice(alphabet) for _ in range(length))


def now_ms() -> int:
    """Current wall clock time in epoch milliseconds"""
    return int(time.time() * 1000)
