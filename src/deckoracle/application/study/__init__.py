# Application Study Package
from .aggregator import SessionAggregator
from .recorder import AnswerRecorder
from .sequencer import SequencerState, SessionSequencer
from .service import StudyService

__all__ = [
    "AnswerRecorder",
    "SequencerState",
    "SessionAggregator",
    "SessionSequencer",
    "StudyService",
]
