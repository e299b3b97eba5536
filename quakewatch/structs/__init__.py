from .enums import EngineMode
from .engine_state import EngineState
from .reading import Reading
