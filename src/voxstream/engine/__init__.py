from voxstream.engine.interface import Recognizer, SpeechEngine
from voxstream.engine.model_store import ModelStore

__all__ = ["ModelStore", "Recognizer", "SpeechEngine"]
