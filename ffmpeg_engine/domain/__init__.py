"""
This package contains the domain types of the FFmpeg Engine.

The domain layer describes what the engine works with, independently of the
filesystem, the lock primitive and the child process that the service layer
drives.

Modules:
    exceptions.py: Defines the exception hierarchy raised by the engine, so
                   callers can tell invalid input apart from deployment or
                   spawn failures.
    models.py: Contains the value types: where the tool is deployed
               (`DeploymentLocation`), what a single call asks for
               (`ConversionRequest`), what it produced (`ConversionResult`),
               and the engine's lifecycle states (`EngineState`).
"""
