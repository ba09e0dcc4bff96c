"""
Contacts Atlas data layer.

Turns a remote spreadsheet into a schema-tolerant, cached, write-capable
contact store, and geocodes contact locations for map display.
"""

__version__ = "1.0.0"
