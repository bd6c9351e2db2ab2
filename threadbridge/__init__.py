"""ThreadBridge: mirror Discord forum threads and GitHub issues"""

__version__ = "1.0.0"
