from urllib.parse import parse_qs, urlsplit

import pytest

from tracky import encode_cli
from tracky.codec import decode_config


def _write(path, lines):
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


def test_payload_decodes_to_file_contents(tmp_path) -> None:
    sources = _write(tmp_path / "sources.txt", ["# lists", "https://lists.example/a.txt", "", "https://lists.example/b.txt"])
    manual = _write(tmp_path / "manual.txt", ["udp://tracker.example:80/announce"])

    payload = encode_cli.build_payload(
        encode_cli.parse_args(["--sources", str(sources), "--manual", str(manual), "--double-newline"])
    )

    config = decode_config(payload)
    assert config.sources == ["https://lists.example/a.txt", "https://lists.example/b.txt"]
    assert config.manual == ["udp://tracker.example:80/announce"]
    assert config.double_newline is True


def test_base_url_produces_raw_endpoint_link(tmp_path) -> None:
    manual = _write(tmp_path / "manual.txt", ["udp://tracker.example:80/announce"])

    link = encode_cli.build_payload(
        encode_cli.parse_args(["--manual", str(manual), "--no-compress", "--base-url", "https://sync.example/"])
    )

    parts = urlsplit(link)
    assert f"{parts.scheme}://{parts.netloc}{parts.path}" == "https://sync.example/api/raw"
    config = decode_config(parse_qs(parts.query)["data"][0])
    assert config.manual == ["udp://tracker.example:80/announce"]
    assert config.sources == []


def test_requires_an_input_file() -> None:
    with pytest.raises(SystemExit):
        encode_cli.parse_args([])


def test_too_many_sources_exits(tmp_path, capsys) -> None:
    sources = _write(tmp_path / "sources.txt", [f"https://lists.example/{i}.txt" for i in range(21)])

    with pytest.raises(SystemExit) as excinfo:
        encode_cli.main(["--sources", str(sources)])

    assert "Too many sources" in str(excinfo.value)
    assert capsys.readouterr().out == ""
