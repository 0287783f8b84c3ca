import io
import os
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import pytest
from PIL import Image

import pixscrub.core.walker as walker
from pixscrub.core.errors import TraversalError
from pixscrub.core.formats import Format
from pixscrub.core.index import GroupKey
from pixscrub.core.walker import ImageEntry, OpaqueEntry, probe, walk


def _image(path: Path, size=(100, 50), fmt=None, color=(200, 10, 10)) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.new("RGB", size, color).save(path, format=fmt)
    return path


def test_probe_decodes_image(tmp_path):
    path = _image(tmp_path / "a.png")

    entry = probe(str(path))

    assert entry == ImageEntry(str(path), GroupKey(Format.PNG, 100, 50))


@pytest.mark.parametrize("name, fmt", [("b.gif", "GIF"), ("c.JPEG", "JPEG"), ("d.jfif", "JPEG")])
def test_probe_other_formats(tmp_path, name, fmt):
    path = _image(tmp_path / name, size=(7, 9), fmt=fmt)

    entry = probe(str(path))

    assert isinstance(entry, ImageEntry)
    assert entry.key.size == (7, 9)


def test_probe_skips_decoding_for_unknown_extension(tmp_path):
    path = _image(tmp_path / "picture.bmp.txt", fmt="PNG")

    assert probe(str(path)) == OpaqueEntry(str(path))


def test_probe_does_not_sniff_content(tmp_path):
    # PNG bytes behind a JPEG extension only get the JPEG decoder.
    path = _image(tmp_path / "mislabelled.jpg", fmt="PNG")

    assert isinstance(probe(str(path)), OpaqueEntry)


def test_probe_corrupted_and_empty_files_are_opaque(tmp_path):
    broken = tmp_path / "broken.png"
    broken.write_bytes(b"\x89PNG\r\n\x1a\nnot really")
    empty = tmp_path / "empty.gif"
    empty.write_bytes(b"")

    assert isinstance(probe(str(broken)), OpaqueEntry)
    assert isinstance(probe(str(empty)), OpaqueEntry)


def test_probe_truncated_image_is_opaque(tmp_path):
    buf = io.BytesIO()
    Image.effect_noise((64, 64), 80).save(buf, format="PNG")
    payload = buf.getvalue()
    path = tmp_path / "cut.png"
    path.write_bytes(payload[: len(payload) // 2])

    assert isinstance(probe(str(path)), OpaqueEntry)


def test_probe_open_failure_is_fatal(tmp_path, monkeypatch):
    path = _image(tmp_path / "locked.png")

    def _deny(*_args, **_kwargs):
        raise PermissionError(13, "Permission denied")

    monkeypatch.setattr(walker, "open", _deny, raising=False)

    with pytest.raises(TraversalError) as info:
        probe(str(path))
    assert info.value.path == str(path)


def test_walk_groups_images_and_copies_the_rest(tmp_path):
    src = tmp_path / "src"
    _image(src / "b.png")
    _image(src / "a.png")
    _image(src / "nested" / "c.png")
    _image(src / "nested" / "small.png", size=(2, 2))
    (src / "nested" / "notes.txt").write_text("keep me")
    (src / "empty").mkdir()
    dst = tmp_path / "dst"

    result = walk(str(src), str(dst))

    key = GroupKey(Format.PNG, 100, 50)
    assert result.index.paths_for(key) == [
        str(src / "a.png"),
        str(src / "b.png"),
        str(src / "nested" / "c.png"),
    ]
    assert result.index.paths_for(GroupKey(Format.PNG, 2, 2)) == [str(src / "nested" / "small.png")]
    assert result.copied == 1
    assert result.directories == 3
    assert (dst / "nested" / "notes.txt").read_text() == "keep me"
    assert (dst / "empty").is_dir()
    assert not (dst / "a.png").exists()


def test_walk_records_absolute_paths(tmp_path, monkeypatch):
    src = tmp_path / "src"
    _image(src / "a.gif", fmt="GIF")
    monkeypatch.chdir(tmp_path)

    result = walk("src", "dst")

    [(key, paths)] = list(result.index.items())
    assert key.format is Format.GIF
    assert paths == [os.path.join(str(tmp_path), "src", "a.gif")]
    assert (tmp_path / "dst").is_dir()


def test_walk_listing_failure_is_fatal(tmp_path, monkeypatch):
    src = tmp_path / "src"
    src.mkdir()

    def _boom(path):
        raise PermissionError(13, "Permission denied", path)

    monkeypatch.setattr(walker.os, "scandir", _boom)

    with pytest.raises(TraversalError) as info:
        walk(str(src), str(tmp_path / "dst"))
    assert info.value.path == str(src)


def test_walk_detects_symlink_cycle(tmp_path):
    src = tmp_path / "src"
    (src / "inner").mkdir(parents=True)
    os.symlink(str(src), str(src / "inner" / "loop"))

    with pytest.raises(TraversalError):
        walk(str(src), str(tmp_path / "dst"))


def test_walk_broken_symlink_is_fatal(tmp_path):
    src = tmp_path / "src"
    src.mkdir()
    os.symlink(str(tmp_path / "missing"), str(src / "dangling.txt"))

    with pytest.raises(TraversalError) as info:
        walk(str(src), str(tmp_path / "dst"))
    assert info.value.path == str(src / "dangling.txt")


@pytest.mark.skipif(not hasattr(os, "mkfifo"), reason="requires FIFOs")
def test_walk_skips_special_files(tmp_path):
    src = tmp_path / "src"
    src.mkdir()
    os.mkfifo(str(src / "pipe"))

    result = walk(str(src), str(tmp_path / "dst"))

    assert result.skipped == 1
    assert not (tmp_path / "dst" / "pipe").exists()


def test_probe_groups_images_above_pillow_pixel_limit(tmp_path, monkeypatch):
    path = _image(tmp_path / "big.png", size=(400, 300))
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 50_000)

    entry = probe(str(path))

    assert entry == ImageEntry(str(path), GroupKey(Format.PNG, 400, 300))
    assert Image.MAX_IMAGE_PIXELS == 50_000


def test_walk_refuses_directory_resolving_into_target(tmp_path):
    src = tmp_path / "src"
    src.mkdir()
    dst = tmp_path / "dst"
    dst.mkdir()
    os.symlink(str(dst), str(src / "out"))

    with pytest.raises(TraversalError) as info:
        walk(str(src), str(dst))

    assert info.value.path == str(src / "out")
    assert not (dst / "out" / "out").exists()
