"""
Preset-specific error types.

All errors inherit from PresetError for easy catching.
Errors are explicit and provide actionable messages.

Direct operations (save, rename, set default) raise these to the caller.
Import never raises per-item conflicts; they are collected in the
ImportResult instead.
"""


class PresetError(Exception):
    """Base exception for all preset failures."""
    pass


class DuplicateContent(PresetError):
    """Raised when a preset with identical content already exists for the generator type."""

    def __init__(self, existing_name: str, generator_type: str, existing_id: str = ""):
        self.existing_name = existing_name
        self.generator_type = generator_type
        self.existing_id = existing_id
        super().__init__(
            f'Preset with identical content already exists: "{existing_name}"'
        )


class DuplicateName(PresetError):
    """Raised when a preset name is already taken within the generator type."""

    def __init__(self, name: str, generator_type: str):
        self.name = name
        self.generator_type = generator_type
        super().__init__(
            f'Preset name "{name}" already exists for {generator_type}. '
            f"Please choose a different name."
        )


class PresetNotFound(PresetError):
    """Raised when a referenced preset does not exist in the user store."""

    def __init__(self, preset_id: str):
        self.preset_id = preset_id
        super().__init__(f"Preset not found: {preset_id}")


class EmptyName(PresetError):
    """Raised when a preset name is empty after trimming."""

    def __init__(self):
        super().__init__("Preset name cannot be empty")


class InvalidName(PresetError):
    """Raised when a preset name is too long or has no usable text left after cleaning."""

    def __init__(self, name: str, reason: str):
        self.name = name
        self.reason = reason
        super().__init__(f'Invalid preset name "{name}": {reason}')


class InvalidGeneratorType(PresetError):
    """Raised when a preset is saved without a usable generator type."""

    def __init__(self, generator_type: object):
        self.generator_type = generator_type
        super().__init__(f"Generator type cannot be empty: {generator_type!r}")


class MalformedImportPayload(PresetError):
    """Raised when an import envelope cannot be decoded at all."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Malformed import payload: {reason}")


class CatalogUnavailable(PresetError):
    """
    Raised inside the factory catalog loader when the catalog cannot be fetched.

    Never escapes the loader: it is logged and degraded to an empty
    factory set.
    """

    def __init__(self, location: str, reason: str):
        self.location = location
        self.reason = reason
        super().__init__(f"Factory catalog unavailable at {location}: {reason}")
