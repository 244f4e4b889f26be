"""Client package for ping-testkit.

Contains the process-level pieces around the echo session:
- interrupt: InterruptListener (SIGINT/SIGTERM -> stop flag), StopFlag
- runner: run_ping, run_session, ExitCode
"""

from client.interrupt import InterruptListener, StopFlag
from client.runner import ExitCode, finish_session, run_ping, run_session

__all__ = [
    "ExitCode",
    "InterruptListener",
    "StopFlag",
    "finish_session",
    "run_ping",
    "run_session",
]
