import pytest

from pdfdancer_async import fingerprint


@pytest.fixture(autouse=True)
def isolated_environment(request, tmp_path, monkeypatch):
    """Keep the install salt and credentials of the developer machine out of unit tests."""
    monkeypatch.setattr(fingerprint, "DEFAULT_SALT_PATH", tmp_path / ".pdfdancer" / "install_salt")
    if request.node.path.parent.name != "e2e":
        monkeypatch.delenv("PDFDANCER_TOKEN", raising=False)
        monkeypatch.delenv("PDFDANCER_BASE_URL", raising=False)
