# Application Package
from .due_collector import collect_due
from .scheduler import Scheduler, SeededFuzz
from .session import SessionController, SessionPhase, start_session

__all__ = ["Scheduler", "SeededFuzz", "SessionController", "SessionPhase", "collect_due", "start_session"]
