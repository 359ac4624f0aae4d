import logging
import time
from typing import Callable, List, Optional, Tuple

from rich.console import Console

from exceptions import InstallationFailed

logger = logging.getLogger(__name__)

Step = Tuple[str, Callable[[], None]]

STEP_DELAY_SECONDS = 1.0


def _placeholder_step() -> None:
    time.sleep(STEP_DELAY_SECONDS)


DEFAULT_STEPS: List[Step] = [
    ("Installing application", _placeholder_step),
    ("Configuring system", _placeholder_step),
    ("Setting up services", _placeholder_step),
]


def run_installation(
    console: Optional[Console] = None,
    steps: Optional[List[Step]] = None,
) -> None:
    """
    Default installation, used when no action scripts are present.
    Stops at the first failing step.
    """
    console = console or Console()
    for label, step in steps if steps is not None else DEFAULT_STEPS:
        console.print(f"[INFO] {label}...", markup=False)
        try:
            step()
        except Exception as e:
            logger.exception("Installation step '%s' failed", label)
            raise InstallationFailed(label, e) from e
