"""shipform: staged shipment form rule engine, rate calculator and draft lifecycle."""

__version__ = "0.1.0"
