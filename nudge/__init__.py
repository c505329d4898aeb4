"""Nudge: behavioural notification agent.

Turns application events into prioritized, rate-limited, localized
messages across push, email, SMS and in-app channels, and tracks each
message through its delivery lifecycle.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
