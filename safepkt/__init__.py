"""Smart contract verification: source storage, project scaffolding, Docker-run verification steps, a CLI and an HTTP API."""

__version__ = "0.2.1"