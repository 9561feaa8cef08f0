# Run state package
from .models import RunState
from .store import RunStateStore, ProcessedTracker
from .coordinator import Coordinator, CoordinatorClient, MessageType

__all__ = ['RunState', 'RunStateStore', 'ProcessedTracker', 'Coordinator', 'CoordinatorClient', 'MessageType']
