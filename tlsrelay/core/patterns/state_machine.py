import logging
import threading
from enum import Enum
from typing import Dict, Set

class ConnectionState(Enum):
    DISCONNECTED  = "disconnected"
    CONNECTING    = "connecting"
    CONNECTED     = "connected"
    RECONNECTING  = "reconnecting"

class StateMachine:
    """Connection state shared between the transport thread and the driver.

    Every read and write happens under one lock; ``healthy`` is derived from
    the state so there is no second flag to keep in step.
    """

    def __init__(self, initial: ConnectionState = ConnectionState.DISCONNECTED):
        self._state = initial
        self._lock  = threading.Lock()
        self.log    = logging.getLogger(self.__class__.__name__)
        self._trans: Dict[ConnectionState, Set[ConnectionState]] = {
            ConnectionState.DISCONNECTED: {ConnectionState.CONNECTING},
            ConnectionState.CONNECTING:   {ConnectionState.CONNECTED,
                                           ConnectionState.DISCONNECTED},
            ConnectionState.CONNECTED:    {ConnectionState.RECONNECTING,
                                           ConnectionState.DISCONNECTED},
            ConnectionState.RECONNECTING: {ConnectionState.CONNECTED,
                                           ConnectionState.RECONNECTING,
                                           ConnectionState.DISCONNECTED},
        }

    @property
    def state(self) -> ConnectionState:
        with self._lock:
            return self._state

    @property
    def healthy(self) -> bool:
        with self._lock:
            return self._state is ConnectionState.CONNECTED

    def can(self, nxt: ConnectionState) -> bool:
        with self._lock:
            return nxt in self._trans[self._state]

    def transition(self, nxt: ConnectionState) -> bool:
        with self._lock:
            prev = self._state
            if nxt not in self._trans[prev]:
                self.log.debug("ignored transition %s -> %s", prev.name, nxt.name)
                return False
            self._state = nxt
        self.log.debug("state %s -> %s", prev.name, nxt.name)
        return True

    def transition_from(self, expected: ConnectionState, nxt: ConnectionState) -> bool:
        """Compare-and-set: move to ``nxt`` only if currently ``expected``."""
        with self._lock:
            if self._state is not expected or nxt not in self._trans[expected]:
                return False
            self._state = nxt
        self.log.debug("state %s -> %s", expected.name, nxt.name)
        return True

    def force(self, nxt: ConnectionState) -> ConnectionState:
        """Unconditional move, used for explicit disconnect requests."""
        with self._lock:
            prev, self._state = self._state, nxt
        return prev
