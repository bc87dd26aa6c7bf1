"""profilectl - Profile dependency and installation-state reconciliation.

Resolves profile selections into consistent closures, reconciles declared
intent against live runtime state, and plans safe reconfiguration.
"""

__version__ = "0.4.0"
