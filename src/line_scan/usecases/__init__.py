from .scan import LineScan, grep, scan

__all__ = ["LineScan", "grep", "scan"]
