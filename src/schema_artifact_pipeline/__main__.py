"""Module entry point for `python -m schema_artifact_pipeline`."""

from .cli import main

if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
