"""
Preset persistence for pattern generators.

- presets: models, hashing, store, catalog, import/export, defaults, notifier
- persistence: key-value storage media
- routes: FastAPI adapter
- cli: operator commands
"""

__version__ = "0.1.0"
