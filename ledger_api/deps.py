"""
Per-request unit of work.

Every route runs inside ``ledger_scope``: one session, one transaction, one
LedgerOrchestrator.  Success commits; any exception rolls the whole request
back before the error handlers turn it into a response.
"""

from collections.abc import Iterator
from contextlib import contextmanager

from fastapi import Request

from ledger_kernel.logging_config import get_logger
from ledger_services.orchestrator import LedgerOrchestrator

logger = get_logger("api.deps")

ACTOR_HEADER = "X-Actor-Id"


@contextmanager
def ledger_scope(request: Request) -> Iterator[LedgerOrchestrator]:
    state = request.app.state
    session = state.session_factory()
    try:
        yield LedgerOrchestrator(session, settings=state.settings, clock=state.clock)
        session.commit()
    except Exception:
        session.rollback()
        logger.warning("request_rolled_back", extra={"path": request.url.path})
        raise
    finally:
        session.close()


def actor_id(request: Request) -> str | None:
    return request.headers.get(ACTOR_HEADER) or None
