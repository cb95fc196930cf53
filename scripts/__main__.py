"""Allow `python -m scripts` by running the gravity demand seed."""

import asyncio
import sys

from scripts.seed import _run_seed

sys.exit(asyncio.run(_run_seed()))
