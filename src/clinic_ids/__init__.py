"""clinic-ids: reversible obfuscation of clinic record identifiers."""

__version__ = "0.1.0"
