"""
Installation steps.

Each module exposes one step function with the signature
``(app_settings, current_logger) -> None``. A step raises on failure.
"""
