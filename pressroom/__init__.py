"""
PRESSROOM - PDF printing core

Produces a final PDF document from one of two sources:

- Merge: concatenates already-rendered PDF fragments with an external merge tool
- Chrome: renders a live HTML page through a remote headless Chrome instance

Architecture:
- Printing Context: printer variants, DevTools protocol client, batch executor
- Utils: deadlines, logging setup, PDF inspection helpers
"""

__version__ = "0.1.0"
