"""Matching of parsed rules against file contents."""

from __future__ import annotations

import os
import re
import stat
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Collection, Optional

from .yara_rules import Rule, RuleSet, StringDef

MAX_FILE_SIZE = 100 * 1024 * 1024  # 100 MB

_INT_RE = re.compile(r"[+-]?\d+")
_COMPARATORS = {
    "<": lambda a, b: a < b,
    ">": lambda a, b: a > b,
    "<=": lambda a, b: a <= b,
    ">=": lambda a, b: a >= b,
    "==": lambda a, b: a == b,
}


@dataclass
class YaraHit:
    """A single rule match."""

    rule_name: str = ""
    namespace: str = ""
    tags: list[str] = field(default_factory=list)
    strings: list[str] = field(default_factory=list)
    meta: dict[str, str] = field(default_factory=dict)
    target_path: str = ""


def scan_file(path: str, rule_set: Optional[RuleSet]) -> list[YaraHit]:
    """Scan one file; unreadable, empty, oversized or missing files give no hits."""
    if rule_set is None or not rule_set.rules:
        return []
    try:
        st = os.stat(path)
    except OSError:
        return []
    if stat.S_ISDIR(st.st_mode) or st.st_size == 0 or st.st_size > MAX_FILE_SIZE:
        return []
    try:
        data = Path(path).read_bytes()
    except OSError:
        return []
    return scan_data(data, path, rule_set)


def scan_data(data: bytes, target_path: str, rule_set: RuleSet) -> list[YaraHit]:
    """Scan a byte buffer against every rule in the set."""
    data_lower = data.lower()
    hits: list[YaraHit] = []
    for rule in rule_set.rules:
        matched, names = _evaluate_rule(rule, data, data_lower)
        if matched:
            hits.append(
                YaraHit(
                    rule_name=rule.name,
                    namespace=rule.meta.get("namespace", ""),
                    tags=list(rule.tags),
                    strings=names,
                    meta=dict(rule.meta),
                    target_path=target_path,
                )
            )
    return hits


def _evaluate_rule(rule: Rule, data: bytes, data_lower: bytes) -> tuple[bool, list[str]]:
    if not rule.strings:
        return _evaluate_condition_only(rule, data), []

    matched = [sd.id for sd in rule.strings if _match_string(sd, data, data_lower)]
    matches = dict.fromkeys(matched)
    if evaluate_condition(rule.condition, matches, len(rule.strings), data):
        return True, matched
    return False, []


def _match_string(sd: StringDef, data: bytes, data_lower: bytes) -> bool:
    if sd.is_regex and sd.regex is not None:
        return sd.regex.search(data) is not None

    if not sd.value:
        return False

    if sd.is_hex and sd.has_wild:
        return _wildcard_regex(sd.value, sd.wild_mask).search(data) is not None

    haystack, needle = data, sd.value
    if sd.nocase and not sd.wide:
        haystack, needle = data_lower, sd.value.lower()

    if sd.fullword:
        return _match_fullword(needle, haystack)
    return needle in haystack


@lru_cache(maxsize=256)
def _wildcard_regex(pattern: bytes, mask: bytes) -> re.Pattern:
    parts = (
        re.escape(bytes([byte])) if m else b"."
        for byte, m in zip(pattern, mask)
    )
    return re.compile(b"".join(parts), re.DOTALL)


def _is_word_byte(byte: int) -> bool:
    return chr(byte).isascii() and (chr(byte).isalnum() or byte == ord("_"))


def _match_fullword(needle: bytes, haystack: bytes) -> bool:
    start = haystack.find(needle)
    while start >= 0:
        end = start + len(needle)
        before_ok = start == 0 or not _is_word_byte(haystack[start - 1])
        after_ok = end >= len(haystack) or not _is_word_byte(haystack[end])
        if before_ok and after_ok:
            return True
        start = haystack.find(needle, start + 1)
    return False


def evaluate_condition(
    cond: str, matches: Collection[str], total_strings: int, data: bytes
) -> bool:
    """Evaluate a rule condition given the ids of the strings that matched."""
    cond = cond.strip()

    if cond == "any of them":
        return len(matches) > 0
    if cond == "all of them":
        return len(matches) == total_strings
    if cond.startswith("any of ($"):
        prefix = _wildcard_prefix(cond)
        return any(ident.startswith(prefix) for ident in matches)
    if cond.startswith("all of ($"):
        # Only the matched ids are known here, so any prefixed match satisfies it.
        prefix = _wildcard_prefix(cond)
        return any(ident.startswith(prefix) for ident in matches)
    if _is_n_of(cond):
        return len(matches) >= _parse_int(cond.split()[0])

    return _evaluate_bool_expr(cond, matches, data)


def _evaluate_bool_expr(cond: str, matches: Collection[str], data: bytes) -> bool:
    cond = cond.strip()
    if cond.startswith("(") and cond.endswith(")"):
        cond = cond[1:-1]

    parts = _split_outside_parens(cond, " or ")
    if parts:
        return any(_evaluate_bool_expr(p, matches, data) for p in parts)

    parts = _split_outside_parens(cond, " and ")
    if parts:
        return all(_evaluate_bool_expr(p, matches, data) for p in parts)

    if cond.startswith("not "):
        return not _evaluate_bool_expr(cond[4:], matches, data)

    cond = cond.strip()
    if cond.startswith("$"):
        return cond in matches
    if "filesize" in cond:
        return _evaluate_filesize(cond, len(data))
    return len(matches) > 0


def _evaluate_condition_only(rule: Rule, data: bytes) -> bool:
    cond = rule.condition.strip()
    return "filesize" in cond and _evaluate_filesize(cond, len(data))


def _evaluate_filesize(cond: str, size: int) -> bool:
    parts = cond.split()
    for i, part in enumerate(parts):
        if part == "filesize" and i + 2 < len(parts):
            compare = _COMPARATORS.get(parts[i + 1])
            if compare is not None:
                return compare(size, _parse_size(parts[i + 2]))
    return False


def _parse_size(text: str) -> int:
    text = text.strip()
    multiplier = 1
    if len(text) > 2 and text.endswith("KB"):
        multiplier, text = 1024, text[:-2]
    elif len(text) > 2 and text.endswith("MB"):
        multiplier, text = 1024 * 1024, text[:-2]
    return _parse_int(text) * multiplier


def _parse_int(text: str) -> int:
    return int(text) if _INT_RE.fullmatch(text) else 0


def _wildcard_prefix(cond: str) -> str:
    start = cond.find("($")
    if start < 0:
        return "$"
    end = cond.find("*", start)
    if end < 0:
        return "$"
    return cond[start + 1:end]


def _is_n_of(cond: str) -> bool:
    parts = cond.split()
    return len(parts) >= 3 and parts[1] == "of" and _INT_RE.fullmatch(parts[0]) is not None


def _split_outside_parens(text: str, sep: str) -> list[str]:
    parts: list[str] = []
    depth = 0
    last = 0
    i = 0
    while i < len(text):
        ch = text[i]
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
        elif depth == 0 and text.startswith(sep, i):
            parts.append(text[last:i])
            last = i + len(sep)
            i += len(sep)
            continue
        i += 1
    parts.append(text[last:])
    return parts if len(parts) > 1 else []