from pathlib import Path

import pytest

from busgen.core.errors import InvalidTarget, NotADirectory
from busgen.targets import default_output_filename, load_source_files, parse_target


@pytest.mark.parametrize(
    "spec, dir_, binding",
    [
        ("./internal/events.Events", "./internal/events", "Events"),
        (".Events", ".", "Events"),
        ("./pkg/v2.0/events.MyBus", "./pkg/v2.0/events", "MyBus"),
        ("events.OrderEvents", "events", "OrderEvents"),
    ],
)
def test_parse_target(spec: str, dir_: str, binding: str) -> None:
    target = parse_target(spec)
    assert (target.dir, target.binding, target.spec) == (dir_, binding, spec)


@pytest.mark.parametrize("spec", ["novar", "path.", ".", "./events.My-Bus", "./events.1Bus"])
def test_parse_target_rejects(spec: str) -> None:
    with pytest.raises(InvalidTarget):
        parse_target(spec)


def test_target_package_is_directory_name(tmp_path: Path) -> None:
    pkg = tmp_path / "orders"
    pkg.mkdir()
    assert parse_target("%s.Events" % pkg).package == "orders"


@pytest.mark.parametrize(
    "prefix, filename",
    [("", "eventbus_gen.py"), ("Order", "orderbus_gen.py"), ("MyBus", "mybusbus_gen.py")],
)
def test_default_output_filename(prefix: str, filename: str) -> None:
    assert default_output_filename(prefix) == filename


def test_load_source_files(tmp_path: Path) -> None:
    (tmp_path / "b.py").write_text("B = 1\n", encoding="utf-8")
    (tmp_path / "a.py").write_text("A = 1\n", encoding="utf-8")
    (tmp_path / "notes.txt").write_text("ignored\n", encoding="utf-8")
    (tmp_path / "sub").mkdir()
    (tmp_path / "sub" / "c.py").write_text("C = 1\n", encoding="utf-8")

    files = load_source_files(str(tmp_path))
    assert [f.name for f in files] == ["a.py", "b.py"]
    assert files[0].text == "A = 1\n"


def test_load_source_files_missing_directory(tmp_path: Path) -> None:
    with pytest.raises(NotADirectory):
        load_source_files(str(tmp_path / "missing"))
