"""
Relay App - Leader Signal Relay

Scans a group chat for trade alerts posted by a single trusted leader,
authenticates the embedded signal and fans it out to every subscriber's
inbox, where a polling client picks it up and acknowledges it.
"""

__version__ = "0.1.0"
__author__ = "Relay Team"
