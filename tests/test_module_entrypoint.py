from __future__ import annotations

import runpy
from pathlib import Path


def test_module_entrypoint_supports_script_execution_context() -> None:
    namespace = runpy.run_path(
        str(Path(__file__).resolve().parents[1] / "src" / "retrykit" / "__main__.py"),
        run_name="retrykit_entrypoint_test",
    )
    assert callable(namespace["run"])
