"""
Configuration Package for the FFmpeg Engine.

This package centralizes the static configuration of the engine: where the
FFmpeg executable is deployed, which embedded payload it is deployed from,
the host-wide lock name shared by every engine instance, and the default
timeouts. Values can be overridden per installation through an optional
`config.user.yaml` file at the project root, or per engine instance through
constructor arguments.
"""
