from .event_loop import IntervalTimer, ScanEventLoop

__all__ = ["IntervalTimer", "ScanEventLoop"]
