"""Configuration package.

Note: settings are built from the environment when
``uavfleet.config.settings`` is first imported. Import from that module
directly where needed so test collection stays free of environment
requirements.
"""

__all__: list[str] = []
