from enum import Enum, auto
import logging

class DriverState(Enum):
    INITIALIZING = auto()
    CONNECTING = auto()
    OPERATIONAL = auto()
    ERROR = auto()
    SHUTDOWN = auto()

class DriverStateMachine:
    """Manages a session driver's lifecycle transitions"""

    def __init__(self):
        self.current_state = DriverState.INITIALIZING
        self.logger = logging.getLogger(self.__class__.__name__)
        self.valid_transitions = {
            DriverState.INITIALIZING: {DriverState.CONNECTING, DriverState.SHUTDOWN},
            DriverState.CONNECTING: {DriverState.OPERATIONAL, DriverState.ERROR, DriverState.SHUTDOWN},
            DriverState.OPERATIONAL: {DriverState.SHUTDOWN},
            DriverState.ERROR: {DriverState.SHUTDOWN},
            DriverState.SHUTDOWN: set()
        }

    def can_transition_to(self, new_state: DriverState) -> bool:
        return new_state in self.valid_transitions.get(self.current_state, set())

    def transition_to(self, new_state: DriverState) -> bool:
        if self.can_transition_to(new_state):
            self.logger.info(f"State transition: {self.current_state.name} -> {new_state.name}")
            self.current_state = new_state
            return True
        else:
            self.logger.error(f"Invalid state transition: {self.current_state.name} -> {new_state.name}")
            return False
