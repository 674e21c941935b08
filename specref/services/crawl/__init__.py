"""ISO catalog crawling subsystem.

Structure:
- base.py: catalog entry type and spider contract
- identity.py: title -> cross-reference id / ISO number rules
- spiders/: catalog listing and document page implementations
- supersession.py: link obsolete entries to their replacements
- net.py: HTTP helpers and retry policies
- pipeline.py: SpecRef snapshot rendering and writer
- runner.py: CLI entrypoint

Pages are fetched with httpx and parsed with selectolax.
"""

__all__ = [
    "base",
    "identity",
    "pipeline",
    "runner",
    "supersession",
]
