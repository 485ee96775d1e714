import pytest

from uenvsync.core.models import LineKind
from uenvsync.merging.lexer import UEnvLexer


@pytest.mark.parametrize("raw, kind, key, commented, value", [
    ("uname_r=4.19.94-ti-r42", LineKind.ASSIGNMENT, "uname_r", False, "4.19.94-ti-r42"),
    ("#dtb=am335x-boneblack-uboot.dtb", LineKind.ASSIGNMENT, "dtb", True, "am335x-boneblack-uboot.dtb"),
    ("  optargs = quiet", LineKind.ASSIGNMENT, "optargs", False, " quiet"),
    ("cmdline=coherent_pool=1M net.ifnames=0", LineKind.ASSIGNMENT, "cmdline", False, "coherent_pool=1M net.ifnames=0"),
    ("#Docs: http://elinux.org/Beagleboard:U-boot_partitioning_layout_2.0", LineKind.COMMENT, None, False, None),
    ("# enable_uboot_overlays=1", LineKind.COMMENT, None, False, None),
    ("", LineKind.BLANK, None, False, None),
    ("   ", LineKind.BLANK, None, False, None),
    ("loadall", LineKind.OTHER, None, False, None),
    ("9lives=1", LineKind.OTHER, None, False, None),
])
def test_classify(raw, kind, key, commented, value):
    """
    CLASSIFICATION TEST: every line maps to exactly one kind and keeps its raw text.
    """
    line = UEnvLexer().classify(raw)
    assert line.kind is kind
    assert line.key == key
    assert line.commented is commented
    assert line.value == value
    assert line.raw == raw


def test_value_keeps_trailing_comment_verbatim():
    line = UEnvLexer().classify("optargs=quiet # keep console silent")
    assert line.value == "quiet # keep console silent"


def test_parse_strips_bom_and_crlf():
    config = UEnvLexer().parse("\ufeffuname_r=5.10.1\r\n#dtb=foo\r\n")
    assert config.raw_lines == ("uname_r=5.10.1", "#dtb=foo")
    assert config.lines[0].key == "uname_r"


def test_parse_bytes_and_render_roundtrip():
    text = "uname_r=4.19.94-ti-r42\n\n# comment\noptargs=quiet\n"
    config = UEnvLexer().parse_bytes(text.encode("utf-8"))
    assert len(config) == 4
    assert config.render() == text


def test_empty_file_renders_empty():
    assert UEnvLexer().parse("").render() == ""


def test_find_matches_commented_and_live():
    config = UEnvLexer().parse("#enable_uboot_overlays=1\nenable_uboot_overlays=0\n")
    assert config.find("enable_uboot_overlays").raw == "#enable_uboot_overlays=1"
    assert config.find("missing") is None


@pytest.mark.parametrize("text, raw_lines", [
    ("optargs=a\x0cb\n", ("optargs=a\x0cb",)),
    ("cmdline=quiet\rsplash\n#dtb=foo\n", ("cmdline=quiet\rsplash", "#dtb=foo")),
    ("# note\x85more\n", ("# note\x85more",)),
    ("a=1\x1cb=2 c=3\n", ("a=1\x1cb=2 c=3",)),
])
def test_only_newline_separates_lines(text, raw_lines):
    """
    SEPARATOR TEST: form feeds, lone CR and unicode separators stay inside a line.
    """
    config = UEnvLexer().parse(text)
    assert config.raw_lines == raw_lines
    assert config.render() == text


def test_decode_keeps_undecodable_bytes():
    lexer = UEnvLexer()
    data = b"# caf\xe9 note\noptargs=quiet\n"
    text, bom = lexer.decode(data)

    assert bom is False
    assert lexer.encode(lexer.parse(text)) == data


def test_bom_is_reported_and_restored():
    lexer = UEnvLexer()
    text, bom = lexer.decode(b"\xef\xbb\xbfuname_r=5.10.1\n")

    assert bom is True
    assert text == "uname_r=5.10.1\n"
    assert lexer.encode(lexer.parse(text), bom=True) == b"\xef\xbb\xbfuname_r=5.10.1\n"
