"""Simple CI/CD pipeline declaration.

Avoid importing submodules at package import time to prevent side-effects
(like logger configuration and filesystem writes) during test collection.
Entry points live in `simple_cicd.orchestrator`.
"""

__all__: list[str] = []
