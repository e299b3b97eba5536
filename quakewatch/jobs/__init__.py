from .reader import Reader
from .detector_processor import DetectorProcessor
from .alert_notifier import AlertNotifier
from .websocket_sender import WebSocketSender
