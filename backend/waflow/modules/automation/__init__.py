"""
Automation Module

Visual automation flows for WhatsApp messaging.
Key features:
- Typed node graph (trigger, message, delay, condition, action)
- Editor state with load / add node / connect / save / publish
- Flow service with per-user storage and a validated publish step
"""
