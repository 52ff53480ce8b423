import os
import sys

# Ensure src is on sys.path so tests can import arena.* and arena_handlers.*
TESTS = os.path.abspath(os.path.dirname(__file__))
ROOT = os.path.abspath(os.path.join(TESTS, "..", "src"))
for path in (ROOT, TESTS):
    if path not in sys.path:
        sys.path.insert(0, path)
