from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Callable, Optional

from planstream.errors import StreamCanceled
from planstream.logging import debug
from planstream.models import Plan


@dataclass
class CompletionOracle:
    """Answers whether a plan has reached a terminal status.

    Every call re-reads the plan; nothing is cached because the status keeps
    changing while a log is being streamed. Fetch errors propagate as-is.
    """

    plan_id: str
    read_plan: Callable[[str], Plan]
    cancel: Optional[threading.Event] = None

    def is_done(self) -> bool:
        if self.cancel is not None and self.cancel.is_set():
            raise StreamCanceled(f"Canceled while checking status of plan {self.plan_id}")
        plan = self.read_plan(self.plan_id)
        debug(f"plan {self.plan_id} status: {plan.status}")
        return plan.is_terminal
