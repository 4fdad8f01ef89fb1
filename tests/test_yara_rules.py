import pytest

from procir.yara_rules import RuleLoadError, RuleSet, load_rules, parse_rules

SIMPLE = """
rule Demo : backdoor loader {
    meta:
        author = "analyst"
        severity = "high"
    strings:
        $s1 = "evil"
        $s2 = "Mixed" nocase
        $s3 = "ab" wide
    condition:
        any of them
}
"""


def test_parse_name_tags_and_meta():
    rules, errors = parse_rules(SIMPLE)
    assert errors == []
    assert len(rules) == 1
    rule = rules[0]
    assert rule.name == "Demo"
    assert rule.tags == ["backdoor", "loader"]
    assert rule.meta == {"author": "analyst", "severity": "high"}
    assert rule.condition == "any of them"


def test_parse_text_strings_and_modifiers():
    rule = parse_rules(SIMPLE)[0][0]
    ids = [s.id for s in rule.strings]
    assert ids == ["$s1", "$s2", "$s3"]
    s1, s2, s3 = rule.strings
    assert s1.value == b"evil"
    assert not s1.nocase and not s1.wide
    assert s2.nocase
    assert s2.value == b"mixed"
    assert s3.wide
    assert s3.value == "ab".encode("utf-16-le")


def test_hex_pattern_with_wildcard():
    src = 'rule H { strings: \n $h = { 4D 5A ?? 00 }\n condition: $h }'
    rule = parse_rules(src)[0][0]
    sd = rule.strings[0]
    assert sd.is_hex
    assert sd.has_wild
    assert sd.value == b"MZ\x00\x00"
    assert len(sd.wild_mask) == len(sd.value)
    assert sd.wild_mask[2] == 0 and sd.wild_mask[0] == 0xFF
    assert rule.condition == "$h"


def test_regex_string_compiled_case_insensitive():
    src = 'rule R { strings:\n $r = /pow[a-z]+shell/i\n condition: $r }'
    sd = parse_rules(src)[0][0].strings[0]
    assert sd.is_regex
    assert sd.regex.search(b"run POWERSHELL now") is not None
    assert sd.regex.search(b"cmd.exe") is None


def test_invalid_regex_is_kept_but_not_marked():
    src = 'rule R { strings:\n $r = /([a-z/\n condition: $r }'
    sd = parse_rules(src)[0][0].strings[0]
    assert sd.is_regex is False
    assert sd.regex is None


def test_missing_condition_defaults_to_any_of_them():
    rule = parse_rules('rule N { strings:\n $a = "x"\n }')[0][0]
    assert rule.condition == "any of them"


def test_comments_removed_but_not_inside_strings():
    src = (
        "// rule Hidden { condition: true }\n"
        "/* rule Also { condition: true } */\n"
        'rule Shown { strings:\n $u = "http://host" // trailing\n condition: $u }'
    )
    rules, errors = parse_rules(src)
    assert errors == []
    assert [r.name for r in rules] == ["Shown"]
    assert rules[0].strings[0].value == b"http://host"


def test_escapes_in_quoted_string():
    src = 'rule E { strings:\n $e = "a\\tb\\"c"\n condition: $e }'
    sd = parse_rules(src)[0][0].strings[0]
    assert sd.value == b'a\tb"c'


def test_unclosed_rule_recovers_to_next():
    src = 'rule Bad { strings:\n $a = "x"\nrule Good { condition: true }'
    rules, errors = parse_rules(src)
    assert len(errors) == 1
    assert [r.name for r in rules] == ["Good"]
    assert rules[0].condition == "true"


def test_multiple_rules_and_private_prefix():
    src = "private rule A { condition: true }\nglobal rule B { condition: false }"
    rules, errors = parse_rules(src)
    assert errors == []
    assert [r.name for r in rules] == ["A", "B"]


def test_rule_without_brace_is_error():
    rules, errors = parse_rules("rule Broken")
    assert rules == []
    assert len(errors) == 1


def test_load_rules_from_file(tmp_path):
    path = tmp_path / "demo.yar"
    path.write_text(SIMPLE)
    rule_set = load_rules(str(path))
    assert isinstance(rule_set, RuleSet)
    assert rule_set.hash == str(path)
    assert [r.name for r in rule_set.rules] == ["Demo"]


def test_load_rules_from_directory_recursively(tmp_path):
    (tmp_path / "a.yar").write_text("rule First { condition: true }")
    sub = tmp_path / "sub"
    sub.mkdir()
    (sub / "b.YARA").write_text("rule Second { condition: true }")
    (tmp_path / "notes.txt").write_text("rule Ignored { condition: true }")
    rule_set = load_rules(str(tmp_path))
    assert [r.name for r in rule_set.rules] == ["First", "Second"]
    assert rule_set.errors == []


def test_load_rules_missing_path(tmp_path):
    with pytest.raises(RuleLoadError):
        load_rules(str(tmp_path / "absent.yar"))


def test_load_rules_no_valid_rules(tmp_path):
    path = tmp_path / "bad.yar"
    path.write_text("rule Broken")
    with pytest.raises(RuleLoadError) as info:
        load_rules(str(path))
    assert info.value.rule_set is not None
    assert info.value.rule_set.rules == []
    assert len(info.value.rule_set.errors) == 1


def test_load_rules_empty_file_is_not_an_error(tmp_path):
    path = tmp_path / "empty.yar"
    path.write_text("")
    rule_set = load_rules(str(path))
    assert rule_set.rules == []
    assert rule_set.errors == []