import pathlib

import pytest


@pytest.fixture
def assets(tmp_path: pathlib.Path, monkeypatch: pytest.MonkeyPatch) -> pathlib.Path:
    """assets/a.txt and assets/sub/b.txt under a temporary working directory."""
    root = tmp_path / "assets"
    (root / "sub").mkdir(parents=True)
    (root / "a.txt").write_text("hello")
    (root / "sub" / "b.txt").write_text("world")
    monkeypatch.chdir(tmp_path)
    return root
