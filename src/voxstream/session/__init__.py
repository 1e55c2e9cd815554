from voxstream.session.manager import StreamingSessionManager
from voxstream.session.streaming import StreamingSession

__all__ = ["StreamingSession", "StreamingSessionManager"]
