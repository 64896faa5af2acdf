"""Event-driven notifications and messaging for a job board.

Sub-packages:
- alerts: saved job alert management
- matching: alert-versus-posting evaluation
- fanout: job-alert fan-out and application event notifications
- notifications: notification writing, listing and retention
- messaging: direct messages, conversations and unread state
- persistence, config, logging, scheduler: supporting infrastructure
"""

__version__ = "0.1.0"
