import json
import logging
import re
from pathlib import Path

import pytest

from record_validator.cli import main
from record_validator.cli_commands import _emit_json, cmd_validate, load_predicates
from record_validator.errors import ConfigurationError
from tests.helpers import write_record, write_rules


def test_emit_json_writes_file(tmp_path):
    out = tmp_path / "r.json"
    _emit_json({"ok": True}, json_out=False, out_path=str(out))
    assert out.exists()
    assert "ok" in out.read_text(encoding="utf-8")


def test_validate_ok(tmp_path, capsys):
    rules = write_rules(tmp_path)
    rec = write_record(tmp_path, 'Title: "Hello"\nDescription: "fine"\n')
    assert cmd_validate(str(rules), str(rec), json_out=False, out_path=None) == 0
    assert "OK: record valid" in capsys.readouterr().out


def test_validate_fail_writes_report(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)

    rules = write_rules(tmp_path)
    rec = write_record(tmp_path, 'Title: ""\nNickname: "a"\n')
    rc = cmd_validate(str(rules), str(rec), json_out=False, out_path="artifacts/last.json")
    assert rc == 2

    out = capsys.readouterr().out
    assert "FAIL: 2 errors, 0 warnings" in out
    assert "[ERROR] Title: 'Title' must not be empty." in out

    rep = json.loads(Path("artifacts/last.json").read_text(encoding="utf-8"))
    assert rep["ok"] is False
    assert [f["field_name"] for f in rep["failures"]] == ["Title", "Nickname"]


def test_validate_config_error(tmp_path, capsys):
    rules = write_record(tmp_path, "fields:\n  T:\n    - rule: nope\n", name="rules.yaml")
    rec = write_record(tmp_path, "T: x\n")
    assert cmd_validate(str(rules), str(rec), json_out=False, out_path=None) == 1
    assert "CONFIG ERROR" in capsys.readouterr().out


def test_missing_record_file(tmp_path):
    rules = write_rules(tmp_path)
    assert cmd_validate(str(rules), str(tmp_path / "nope.yaml"), False, None) == 1


def test_main_json_output(tmp_path, capsys):
    rules = write_rules(tmp_path)
    rec = write_record(tmp_path, '{"Title": "Hello"}', name="record.json")
    rc = main(["validate", "--rules", str(rules), "--record", str(rec), "--json"])
    assert rc == 0
    rep = json.loads(capsys.readouterr().out)
    assert rep["ok"] is True
    assert rep["summary"] == {"errors": 0, "warnings": 0}


PREDICATES_MODULE = """\
from datetime import date


def adult(dob):
    today = date.today()
    age = today.year - dob.year - ((today.month, today.day) < (dob.month, dob.day))
    return age >= 18


def broken(value):
    return value.nope


PREDICATES = {"adult": adult, "broken": broken}
"""

PERSON_RULES = """\
fields:
  DateOfBirth:
    - rule: must_satisfy
      predicate: adult
      guard: has_value
"""


def _predicates_module(tmp_path, monkeypatch, name):
    (tmp_path / f"{name}.py").write_text(PREDICATES_MODULE, encoding="utf-8")
    monkeypatch.syspath_prepend(str(tmp_path))
    return f"{name}:PREDICATES"


def test_numeric_value_under_length_rule(tmp_path, capsys):
    # 숫자는 문자열 표현의 길이로 검사된다 (12345 -> 5자)
    rules = write_rules(tmp_path)
    rec = write_record(tmp_path, "Title: 12345\nNickname: 7\n")
    rc = cmd_validate(str(rules), str(rec), json_out=False, out_path=None)
    assert rc == 2

    out = capsys.readouterr().out
    assert "Title" not in out
    assert "[ERROR] Nickname: The length of 'Nickname' must be at least 2 characters. You entered 1 characters." in out


def test_predicates_option(tmp_path, monkeypatch, capsys):
    ref = _predicates_module(tmp_path, monkeypatch, "rv_people_rules")
    rules = write_record(tmp_path, PERSON_RULES, name="rules.yaml")

    minor = write_record(tmp_path, "DateOfBirth: 2099-01-01\n", name="minor.yaml")
    adult = write_record(tmp_path, "DateOfBirth: 1980-01-01\n", name="adult.yaml")
    absent = write_record(tmp_path, "DateOfBirth: null\n", name="absent.yaml")

    assert cmd_validate(str(rules), str(minor), False, None, predicates_ref=ref) == 2
    assert cmd_validate(str(rules), str(adult), False, None, predicates_ref=ref) == 0
    assert cmd_validate(str(rules), str(absent), False, None, predicates_ref=ref) == 0

    rc = main(["validate", "--rules", str(rules), "--record", str(adult), "--predicates", ref])
    assert rc == 0


def test_predicate_error_reported_as_rule_error(tmp_path, monkeypatch, capsys):
    ref = _predicates_module(tmp_path, monkeypatch, "rv_broken_rules")
    rules = write_record(
        tmp_path,
        "fields:\n  Code:\n    - rule: must_satisfy\n      predicate: broken\n",
        name="rules.yaml",
    )
    rec = write_record(tmp_path, "Code: abc\n")
    assert cmd_validate(str(rules), str(rec), False, None, predicates_ref=ref) == 1
    assert "RULE ERROR: rule 'must_satisfy' on field 'Code'" in capsys.readouterr().out


def test_predicates_required_for_named_predicate(tmp_path, capsys):
    rules = write_record(tmp_path, PERSON_RULES, name="rules.yaml")
    rec = write_record(tmp_path, "DateOfBirth: 1980-01-01\n")
    assert cmd_validate(str(rules), str(rec), False, None) == 1
    assert "unknown predicate: 'adult'" in capsys.readouterr().out


@pytest.mark.parametrize(
    "ref", ["no_colon", ":PREDICATES", "rv_missing_module_xyz:PREDICATES", "json:dumps"]
)
def test_bad_predicates_ref(ref):
    with pytest.raises(ConfigurationError):
        load_predicates(ref)


def test_log_level_debug(tmp_path, capsys):
    pkg_logger = logging.getLogger("record_validator")
    try:
        rules = write_rules(tmp_path)
        rec = write_record(tmp_path, 'Title: "Hello"\n')
        rc = main(
            ["--log-level", "DEBUG", "validate", "--rules", str(rules), "--record", str(rec)]
        )
        assert rc == 0
        assert pkg_logger.level == logging.DEBUG

        err = capsys.readouterr().err
        assert re.search(
            r"^\[\d{2}:\d{2}:\d{2}\.\d{3}\] INFO\s+\[record_validator\.loader\] loaded rule config",
            err,
            re.MULTILINE,
        )
        # Nickname 가드가 false라 skip 로그가 남는다
        assert "[record_validator.rules] skip Nickname.min_length: guard is false" in err
    finally:
        pkg_logger.handlers.clear()
        pkg_logger.setLevel(logging.NOTSET)
