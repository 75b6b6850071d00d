"""spec2postman -- Turn OpenAPI/Swagger docs URLs into Postman-ready documents.

This package takes a URL (or raw text) that is believed to point at an
OpenAPI or Swagger description, guesses the machine-readable document behind
a human-facing docs page, fetches it through a hardened guard, parses it as
JSON or YAML, validates it, and rewrites its server and security metadata so
that it imports cleanly into Postman.

Typical usage::

    from spec2postman.pipeline import SpecPipeline

    pipeline = SpecPipeline()
    result = pipeline.fetch_by_url("https://petstore3.swagger.io/api/v3/docs")
    if result.ok:
        document = result.data

Modules:
    app: Typer application and CLI entry point.
    pipeline: Orchestrator that chains every stage and maps errors.
    models: Pydantic models shared across the package.
    config: XDG-aware configuration with environment overrides.
    exceptions: Exception hierarchy with error codes and exit-code mapping.
    exit_codes: Numeric exit codes per error category.
    output: stdout/stderr formatting system with Rich support.
"""

__version__ = "0.1.0"
