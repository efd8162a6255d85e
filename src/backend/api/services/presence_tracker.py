"""
Process-scoped registry of live sessions.

Maps each open connection (sid) to the engineer that registered on it and
counts open sessions per engineer. An engineer is considered present while at
least one session is open.
"""

from typing import Dict, List, Optional, Set


class PresenceTracker:
    """Session registry. Handlers go through these accessors only."""

    def __init__(self):
        self._engineer_by_sid: Dict[str, int] = {}
        self._sids_by_engineer: Dict[int, Set[str]] = {}

    def register(self, sid: str, engineer_id: int) -> int:
        """
        Bind a session to an engineer.

        Registering a sid that already belongs to another engineer moves it.

        Returns:
            Number of open sessions for the engineer after registration
        """
        previous = self._engineer_by_sid.get(sid)
        if previous is not None and previous != engineer_id:
            self._discard(sid, previous)

        self._engineer_by_sid[sid] = engineer_id
        self._sids_by_engineer.setdefault(engineer_id, set()).add(sid)
        return len(self._sids_by_engineer[engineer_id])

    def unregister(self, sid: str) -> Optional[int]:
        """
        Drop a session.

        Returns:
            The engineer the session belonged to, or None for an unknown sid
        """
        engineer_id = self._engineer_by_sid.pop(sid, None)
        if engineer_id is not None:
            self._discard(sid, engineer_id)
        return engineer_id

    def engineer_for(self, sid: str) -> Optional[int]:
        return self._engineer_by_sid.get(sid)

    def session_count(self, engineer_id: int) -> int:
        return len(self._sids_by_engineer.get(engineer_id, ()))

    def online_engineer_ids(self) -> List[int]:
        return sorted(self._sids_by_engineer)

    def clear(self) -> None:
        self._engineer_by_sid.clear()
        self._sids_by_engineer.clear()

    def _discard(self, sid: str, engineer_id: int) -> None:
        sids = self._sids_by_engineer.get(engineer_id)
        if sids is None:
            return
        sids.discard(sid)
        if not sids:
            del self._sids_by_engineer[engineer_id]
