import pytest

from cpm.PARSERS.env_parser import EnvFileParser
from cpm.UTILS.string_interpolation import EnvironmentInterpolator


def test_parse_from_string():
    content = """
KEY1=VALUE1
KEY2 = VALUE2
# This is a comment
KEY3="VALUE3" # Trailing comment
KEY4='VALUE4'
export KEY5=VALUE5
"""
    env = EnvFileParser.parse_from_string(content)
    assert env['KEY1'] == 'VALUE1'
    assert env['KEY2'] == 'VALUE2'
    assert env['KEY3'] == 'VALUE3'
    assert env['KEY4'] == 'VALUE4'
    assert env['KEY5'] == 'VALUE5'
    assert 'KEY6' not in env


def test_parse_expands_earlier_keys_then_lookup():
    content = "HOST=db\nURL=postgres://${HOST}:${PORT}/app\n"
    env = EnvFileParser.parse_from_string(content, {"PORT": "5432", "HOST": "ignored"}.get)
    assert env['URL'] == 'postgres://db:5432/app'


def test_bare_key_is_inherited_or_dropped():
    env = EnvFileParser.parse_from_string("FROM_LOOKUP\nMISSING\n", {"FROM_LOOKUP": "yes"}.get)
    assert env == {"FROM_LOOKUP": "yes"}


def test_parse_file(tmp_path):
    path = tmp_path / ".env"
    path.write_text("A=1\nB=${A}2\n")
    assert EnvFileParser.parse(str(path)) == {"A": "1", "B": "12"}


def test_interpolation_modifiers():
    lookup = {"SET": "value", "EMPTY": ""}.get
    assert EnvironmentInterpolator.interpolate("${SET}", lookup) == "value"
    assert EnvironmentInterpolator.interpolate("$SET/x", lookup) == "value/x"
    assert EnvironmentInterpolator.interpolate("${MISSING}", lookup) == ""
    assert EnvironmentInterpolator.interpolate("${EMPTY:-default}", lookup) == "default"
    assert EnvironmentInterpolator.interpolate("${EMPTY-default}", lookup) == ""
    assert EnvironmentInterpolator.interpolate("${MISSING-default}", lookup) == "default"
    assert EnvironmentInterpolator.interpolate("${SET:+alt}", lookup) == "alt"
    assert EnvironmentInterpolator.interpolate("${EMPTY:+alt}", lookup) == ""
    assert EnvironmentInterpolator.interpolate("${EMPTY+alt}", lookup) == "alt"
    assert EnvironmentInterpolator.interpolate("$$SET", lookup) == "$SET"


@pytest.mark.parametrize("content", ['FOO="unterminated', "NOT A VALID LINE", "A=1\nB='open\n"])
def test_malformed_statement_raises(content):
    with pytest.raises(ValueError, match="line"):
        EnvFileParser.parse_from_string(content)


@pytest.mark.parametrize("content", ["1BAD=x", "A=1\nBAD$NAME=x\n"])
def test_invalid_variable_name_raises(content):
    with pytest.raises(ValueError, match="invalid variable name"):
        EnvFileParser.parse_from_string(content)


def test_error_reports_line_number():
    with pytest.raises(ValueError, match="line 3"):
        EnvFileParser.parse_from_string("A=1\n# comment\nNOT VALID\n")
