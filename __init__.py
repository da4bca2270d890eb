"""
Reihtuag - A pattern-matching chat robot over WebSockets
========================================================

Clients send free-text utterances over a persistent connection; every
utterance is answered with a randomized canned reply, broadcast to all
connected clients:
1. Case-insensitive phrase matching against ordered categories
2. Randomized reply templates over fragment sets

License: MIT
Version: 1.0.0
"""

__version__ = "1.0.0"
__license__ = "MIT"
