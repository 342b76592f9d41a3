import ast
from pathlib import Path

FORBIDDEN = ("pydantic", "requests", "fastapi", "starlette", "yaml", "blueprintkit.addons")


def test_engine_source_does_not_import_adapter_dependencies():
    repo_root = Path(__file__).resolve().parents[1]
    engine_dir = repo_root / "blueprintkit" / "engine"

    offenders: list[str] = []

    for path in sorted(engine_dir.rglob("*.py")):
        tree = ast.parse(path.read_text(encoding="utf-8"), filename=str(path))
        for node in ast.walk(tree):
            if isinstance(node, ast.Import):
                for alias in node.names:
                    if alias.name.startswith(FORBIDDEN):
                        offenders.append(f"{path}: import {alias.name}")
            elif isinstance(node, ast.ImportFrom):
                if node.module is None:
                    continue
                if node.module.startswith(FORBIDDEN):
                    offenders.append(f"{path}: from {node.module} import ...")

    assert offenders == []


def test_importing_blueprintkit_does_not_pull_in_adapter_dependencies():
    import subprocess
    import sys
    import textwrap

    code = textwrap.dedent(
        """\
        import sys

        import blueprintkit
        import blueprintkit.engine

        forbidden = ("pydantic", "requests", "fastapi", "starlette", "yaml")
        loaded = sorted(name for name in sys.modules if name.split(".")[0] in forbidden)
        if loaded:
            raise SystemExit(f"Importing blueprintkit loaded adapter modules: {loaded}")
        """
    )

    proc = subprocess.run(
        [sys.executable, "-c", code],
        capture_output=True,
        text=True,
        cwd=str(Path(__file__).resolve().parents[1]),
    )
    assert proc.returncode == 0, proc.stderr or proc.stdout
