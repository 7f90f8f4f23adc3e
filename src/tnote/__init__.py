"""
tnote: small offline terminal notes.

A personal note store with:
- Scriptable CLI (add, list, view, done, rm, find)
- Interactive terminal browser (list, view, add, edit)
- Durable sqlite storage with monotonic note IDs
"""

__version__ = "0.1.0"
