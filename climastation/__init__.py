"""Weather station logic: sensor decoding, display framebuffer, alarms and web monitoring."""

__version__ = "0.1.0"