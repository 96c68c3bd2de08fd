"""WhatsApp automation flows: visual flow editor core and flow service."""

__version__ = "0.1.0"
