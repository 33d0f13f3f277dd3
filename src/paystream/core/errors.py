"""
Error classes for PayStream.

This module defines the configuration error raised when an engine, a session
or a configuration file is set up with invalid parameters.
"""


class ConfigError(Exception):
    """
    Configuration error during engine setup or config loading.

    This exception is raised when there are issues with the engine
    configuration, invalid construction arguments, or malformed configuration
    files.

    **Common Causes:**
    - Unknown keys or invalid values in a configuration file
    - Negative tax percentages, timeouts or token decimals
    - Requesting Live mode without a ledger adapter
    - Negative principals passed to a stream state

    **Example Usage:**
        ```python
        from paystream.core.config import load_config
        from paystream.core.errors import ConfigError

        try:
            cfg = load_config({"tax_percent": -5})
        except ConfigError as e:
            print(f"Configuration error: {e}")
        ```
    """

    pass
