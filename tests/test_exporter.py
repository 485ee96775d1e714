from ruamel.yaml import YAML

from uenvsync.merging.lexer import UEnvLexer
from uenvsync.merging.merger import merge
from uenvsync.report.exporter import ChangeLogExporter


def _sample_result():
    lexer = UEnvLexer()
    remote = lexer.from_lines(["uname_r=4.19.94-ti-r42", "optargs=quiet", "#dtb=foo"])
    local = lexer.from_lines(["uname_r=5.10.1", "optargs=verbose splash", "newvar=1", "#dtb=foo"])
    return merge(local, remote)


def test_export_is_loadable_yaml():
    text = ChangeLogExporter().export(_sample_result(), "./uEnv.txt", "/boot/uEnv.txt")

    assert text.startswith("# uenvsync change log")
    data = YAML(typ='safe').load(text)
    assert data["local"] == "./uEnv.txt"
    assert data["remote"] == "/boot/uEnv.txt"
    assert data["summary"] == {"skip": 1, "update": 1, "add": 1, "same": 1}
    assert data["changes"][0] == {"action": "skip", "key": "uname_r", "line": "uname_r=5.10.1"}
    assert data["changes"][1] == {
        "action": "update", "key": "optargs",
        "from": "optargs=quiet", "to": "optargs=verbose splash",
    }
    assert data["changes"][2]["line"] == "newvar=1"


def test_write_creates_parent_dirs(tmp_path):
    target = tmp_path / "reports" / "changes.yaml"
    written = ChangeLogExporter().write(target, _sample_result(), "a", "b")
    assert written == target
    assert "optargs=verbose splash" in target.read_text()
