from .dispatch import dispatch_order_confirmation
from .email import EmailNotifier

__all__ = ["EmailNotifier", "dispatch_order_confirmation"]
