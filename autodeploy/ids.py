"""
Run directory naming.
"""

import random
import string
from datetime import datetime
from typing import Optional


def new_run_id(now: Optional[datetime] = None) -> str:
    """
    Generate a run directory name in format: deployment_YYYYMMDD_hhmmss_XXXX

    The random suffix keeps two runs started within the same second apart.

    Returns:
        str: Unique run name
    """
    now = now or datetime.now()
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=4))
    return f"deployment_{now.strftime('%Y%m%d')}_{now.strftime('%H%M%S')}_{suffix}"

