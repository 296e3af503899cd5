"""Tests for the command-line scanner."""

import json

import pytest


@pytest.fixture(autouse=True)
def _quiet_logging(monkeypatch):
    monkeypatch.setattr("provenance.__main__.configure_logging", lambda settings=None: None)


@pytest.fixture
def files(tmp_path, software_jpeg, plain_bytes):
    ai = tmp_path / "ai.jpg"
    ai.write_bytes(software_jpeg)
    clean = tmp_path / "clean.jpg"
    clean.write_bytes(plain_bytes)
    return ai, clean


class TestCLI:
    def test_text_output(self, files, capsys):
        from provenance.__main__ import main

        ai, clean = files
        assert main([str(ai), str(clean)]) == 0
        out = capsys.readouterr().out.splitlines()
        assert out[0] == f"{ai}: Midjourney [exif] Midjourney v6"
        assert out[1] == f"{clean}: no AI provenance evidence"

    def test_exit_status_no_match(self, files):
        from provenance.__main__ import main

        assert main([str(files[1])]) == 1

    def test_json_output(self, files, capsys):
        from provenance.__main__ import main

        ai, clean = files
        main(["--json", str(ai), str(clean)])
        records = [json.loads(line) for line in capsys.readouterr().out.splitlines()]
        assert records[0] == {
            "file": str(ai),
            "matched": True,
            "provider": "Midjourney",
            "method": "exif",
            "details": "Midjourney v6",
        }
        assert records[1]["matched"] is False

    def test_exif_dump(self, files, capsys):
        from provenance.__main__ import main

        main(["--json", "--exif", str(files[0])])
        record = json.loads(capsys.readouterr().out)
        assert record["exif"] == {"Software": "Midjourney v6"}

    def test_concurrent_mode(self, files, capsys):
        from provenance.__main__ import main

        assert main(["--concurrent", "--json", str(files[0])]) == 0
        assert json.loads(capsys.readouterr().out)["method"] == "exif"

    def test_fast_mode_small_file(self, files):
        from provenance.__main__ import main

        # below the fast-path size floor
        assert main(["--fast", str(files[0])]) == 1

    def test_missing_file(self, tmp_path, capsys):
        from provenance.__main__ import main

        missing = tmp_path / "gone.jpg"
        assert main([str(missing)]) == 1
        assert "no AI provenance evidence" in capsys.readouterr().out

    def test_modes_exclusive(self, files):
        from provenance.__main__ import main

        with pytest.raises(SystemExit):
            main(["--fast", "--concurrent", str(files[0])])

    def test_version(self, capsys):
        from provenance.__main__ import main
        from provenance.config import get_settings

        with pytest.raises(SystemExit) as exc:
            main(["--version"])
        assert exc.value.code == 0
        assert capsys.readouterr().out.strip() == f"provenance {get_settings().version}"
