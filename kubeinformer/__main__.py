"""Entry point for `python -m kubeinformer`.

Usage:
    python -m kubeinformer
    KUBEINFORMER_CONFIG_FILE=config.yaml python -m kubeinformer
"""

from __future__ import annotations

import asyncio

from kubeinformer.app import main

asyncio.run(main())
