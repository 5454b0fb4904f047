"""Quick validation of the built-in catalog and shipped config."""
import pytest

from scripts import validate_catalog


@pytest.fixture(autouse=True)
def keep_test_logging(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(validate_catalog, "configure_logging", lambda *args, **kwargs: None)


def test_shipped_config_is_clean(capsys: pytest.CaptureFixture) -> None:
    assert validate_catalog.main(["--strict"]) == 0
    out = capsys.readouterr().out
    assert "Active schemas: 5" in out
    assert "DROP" not in out


def test_rejected_pattern_fails_strict(tmp_path, capsys: pytest.CaptureFixture) -> None:
    config = tmp_path / "config.yaml"
    config.write_text(
        "schemas:\n"
        "  - name: named-group\n"
        "    pattern: '(?<status>modified)'\n"
        "    recipe: lines\n"
        "  - name: ok\n"
        "    pattern: 'git'\n"
        "    recipe: lines\n",
        encoding="utf-8",
    )
    assert validate_catalog.main(["--config", str(config)]) == 0
    assert validate_catalog.main(["--config", str(config), "--strict"]) == 1
    out = capsys.readouterr().out
    assert "DROP  named-group" in out
    assert "OK    ok" in out
