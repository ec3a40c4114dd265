"""
Tests for the media-tagger command line.
"""

import json

import pytest

from scripts.media_tagger import main
from src.core.config import VERSION


@pytest.fixture(autouse=True)
def cli_env(tmp_path, monkeypatch):
    """Point the CLI at a scratch workspace with the offline provider."""
    monkeypatch.setenv("DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("PROFILES_DIR", str(tmp_path / "profiles"))
    monkeypatch.setenv("EMBED_PROVIDER", "hash")
    monkeypatch.setenv("HASH_EMBED_DIM", "8")
    return tmp_path


@pytest.fixture
def workspace(cli_env):
    """Assets with reps on disk, ready for embed."""
    data_dir = cli_env / "data"
    reps_dir = cli_env / "reps"
    data_dir.mkdir()
    reps_dir.mkdir()

    assets = []
    for name in ["cat", "dog", "boat"]:
        rep = reps_dir / f"{name}.jpg"
        rep.write_bytes(f"pixels of a {name}".encode())
        assets.append({
            "id": name,
            "absPath": f"/photos/{name}.jpg",
            "relPath": f"{name}.jpg",
            "ext": "jpg",
            "kind": "image",
            "repPath": str(rep),
        })
    (data_dir / "assets.json").write_text(json.dumps(assets))
    return cli_env


def test_query_text_requires_text(capsys):
    with pytest.raises(SystemExit) as exc_info:
        main(["query-text"])

    assert exc_info.value.code == 2
    assert "--text" in capsys.readouterr().err


def test_query_text_rejects_invalid_k(capsys):
    with pytest.raises(SystemExit):
        main(["query-text", "--text", "a photo of a dog", "--k", "nope"])

    assert "--k must be a positive integer" in capsys.readouterr().err


@pytest.mark.parametrize("value", ["0", "-3", "2.5"])
def test_query_rejects_non_positive_k(capsys, value):
    with pytest.raises(SystemExit):
        main(["query", "--anchor", "x.jpg", "--k", value])

    assert "--k must be a positive integer" in capsys.readouterr().err


@pytest.mark.parametrize("value", ["nan", "inf", "abc"])
def test_query_text_rejects_invalid_min_score(capsys, value):
    with pytest.raises(SystemExit):
        main(["query-text", "--text", "a photo of a dog", "--min-score", value])

    assert "--min-score must be a number" in capsys.readouterr().err


def test_query_without_anchors(capsys, workspace):
    assert main(["query"]) == 1
    assert "requires --anchors or --anchor" in capsys.readouterr().err


def test_query_before_embed_reports_uninitialized(capsys, workspace):
    assert main(["query", "--anchor", str(workspace / "reps" / "cat.jpg")]) == 1
    assert "media-tagger embed" in capsys.readouterr().err


def test_embed_then_query(capsys, workspace):
    assert main(["embed"]) == 0
    out = capsys.readouterr().out
    assert "Meta: dim=8, count=3" in out

    anchor = str(workspace / "reps" / "dog.jpg")
    assert main(["query", "--anchor", anchor, "--k", "2", "--out", "dogs.json"]) == 0
    assert "Wrote data/dogs.json with 2 rows." in capsys.readouterr().out

    rows = json.loads((workspace / "data" / "dogs.json").read_text())
    assert rows[0]["id"] == "dog"
    assert rows[0]["score"] == pytest.approx(1.0, abs=1e-6)
    assert json.loads((workspace / "data" / "last_query.json").read_text()) == rows


def test_query_uses_profile_defaults(capsys, workspace):
    profiles_dir = workspace / "profiles"
    profiles_dir.mkdir()
    (profiles_dir / "pets.json").write_text(json.dumps({
        "name": "pets",
        "tagTemplate": "Pets|{label}",
        "queryDefaults": {"k": 1, "minScore": -1.0},
    }))
    main(["embed"])
    capsys.readouterr()

    anchors = f"{workspace / 'reps' / 'cat.jpg'}|{workspace / 'reps' / 'dog.jpg'}"
    assert main(["query", "--anchors", anchors, "--profile", "pets", "--label", "Rex"]) == 0

    out = capsys.readouterr().out
    assert "Profile tag preview: Pets|Rex" in out
    assert "with 1 rows" in out


def test_query_text_round_trip(capsys, workspace):
    main(["embed"])
    capsys.readouterr()

    assert main(["query-text", "--text", "a dog on a beach", "--k", "3", "--min-score", "-1"]) == 0
    rows = json.loads((workspace / "data" / "candidates.json").read_text())
    assert len(rows) == 3
    assert rows == sorted(rows, key=lambda r: r["score"], reverse=True)


def test_status(capsys, workspace):
    main(["embed"])
    capsys.readouterr()

    assert main(["status"]) == 0
    out = capsys.readouterr().out
    assert "Assets: 3" in out
    assert "Embeddings meta count: 3" in out
    assert "Embeddings done (progress): 3" in out


def test_verify_exit_codes(capsys, workspace):
    assert main(["verify"]) == 2
    main(["embed"])
    assert main(["verify"]) == 0


def test_version_flag(capsys):
    with pytest.raises(SystemExit) as exc_info:
        main(["--version"])

    assert exc_info.value.code == 0
    assert capsys.readouterr().out.strip() == f"media-tagger {VERSION}"


def test_verify_json_reports_store_integrity(capsys, workspace):
    main(["embed"])
    capsys.readouterr()

    assert main(["verify", "--json"]) == 0
    report = json.loads(capsys.readouterr().out)
    assert report["operation"] == "store_integrity_check"
    assert report["issues_found"] == 0
    assert report["metadata"]["count"] == 3
    assert report["metadata"]["data_bytes"] == 3 * 8 * 4

    with open(workspace / "data" / "embeddings.f32", "ab") as f:
        f.write(b"\x00" * 4)

    assert main(["verify", "--json"]) == 2
    report = json.loads(capsys.readouterr().out)
    assert report["issues_found"] == 1
    assert "expected 96" in report["errors"][0]
