"""Public smoke tests for basic module wiring.

Keep these minimal and free of any real-world data.
"""

from __future__ import annotations


def test_imports() -> None:
    import beanbill
    import beanbill.application.pipeline
    import beanbill.cli.main
    import beanbill.domain
    import beanbill.importers
    import beanbill.runtime

    assert beanbill is not None
    assert beanbill.application.pipeline is not None
    assert beanbill.cli.main is not None
    assert beanbill.domain is not None
    assert beanbill.importers is not None
    assert beanbill.runtime is not None
