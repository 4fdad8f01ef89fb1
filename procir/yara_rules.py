"""Parsing of YARA rule source into a simplified rule model."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

_RULE_EXTENSIONS = {".yar", ".yara", ".rule"}
_SECTIONS = ("meta:", "strings:", "condition:")


class RuleLoadError(Exception):
    """Raised when rules cannot be loaded from a path."""

    def __init__(self, message: str, rule_set: Optional["RuleSet"] = None) -> None:
        super().__init__(message)
        self.rule_set = rule_set


class _RuleSyntaxError(ValueError):
    """A single rule could not be parsed."""


@dataclass
class StringDef:
    """A string definition within a rule."""

    id: str = ""
    value: bytes = b""
    is_hex: bool = False
    is_regex: bool = False
    regex: Optional[re.Pattern] = None
    nocase: bool = False
    wide: bool = False
    ascii: bool = True
    fullword: bool = False
    alternates: list[bytes] = field(default_factory=list)
    has_wild: bool = False
    wild_mask: bytes = b""


@dataclass
class Rule:
    """A parsed rule."""

    name: str = ""
    tags: list[str] = field(default_factory=list)
    meta: dict[str, str] = field(default_factory=dict)
    strings: list[StringDef] = field(default_factory=list)
    condition: str = ""


@dataclass
class RuleSet:
    """All rules loaded from a file or directory tree."""

    rules: list[Rule] = field(default_factory=list)
    hash: str = ""
    errors: list[str] = field(default_factory=list)


def load_rules(path: str) -> RuleSet:
    """Load rules from a file or, recursively, from a directory."""
    rule_set = RuleSet(hash=path)
    root = Path(path)
    try:
        root.stat()
    except OSError:
        raise RuleLoadError(f"rule path does not exist: {path}") from None

    if root.is_dir():
        for rule_file in _walk_rule_files(root):
            try:
                text = rule_file.read_text(encoding="utf-8", errors="replace")
            except OSError as exc:
                rule_set.errors.append(f"failed to read {rule_file}: {exc}")
                continue
            rules, errors = parse_rules(text)
            rule_set.rules.extend(rules)
            rule_set.errors.extend(errors)
    else:
        text = root.read_text(encoding="utf-8", errors="replace")
        rule_set.rules, rule_set.errors = parse_rules(text)

    if not rule_set.rules and rule_set.errors:
        raise RuleLoadError(
            "no valid rules: " + "; ".join(rule_set.errors), rule_set
        )
    return rule_set


def _walk_rule_files(directory: Path):
    try:
        entries = sorted(directory.iterdir(), key=lambda p: p.name)
    except OSError:
        return
    for entry in entries:
        if entry.is_dir() and not entry.is_symlink():
            yield from _walk_rule_files(entry)
        elif entry.suffix.lower() in _RULE_EXTENSIONS:
            yield entry


def parse_rules(source: str) -> tuple[list[Rule], list[str]]:
    """Parse rule source text; return the rules and any error messages."""
    rules: list[Rule] = []
    errors: list[str] = []

    remaining = _remove_comments(source)
    while True:
        remaining = remaining.strip()
        if not remaining:
            break
        idx = _find_rule_start(remaining)
        if idx < 0:
            break
        remaining = remaining[idx:]

        try:
            rule, rest = _extract_rule(remaining)
        except _RuleSyntaxError as exc:
            errors.append(str(exc))
            next_rule = remaining[1:].find("\nrule ")
            if next_rule < 0:
                break
            remaining = remaining[next_rule + 1:]
            continue

        rules.append(rule)
        remaining = rest

    return rules, errors


def _find_rule_start(text: str) -> int:
    positions = [
        pos
        for pos in (text.find(p) for p in ("rule ", "private rule ", "global rule "))
        if pos >= 0
    ]
    return min(positions) if positions else -1


def _extract_rule(source: str) -> tuple[Rule, str]:
    start = source.find("rule ")
    if start < 0:
        raise _RuleSyntaxError("missing 'rule' keyword")

    after_rule = source[start + 5:].strip()
    name_end = min(
        (pos for pos in (after_rule.find(":"), after_rule.find("{")) if pos >= 0),
        default=-1,
    )
    if name_end < 0:
        raise _RuleSyntaxError("syntax error: missing '{'")

    rule = Rule(name=after_rule[:name_end].strip())
    rest = after_rule[name_end:]

    if rest.startswith(":"):
        tag_end = rest.find("{")
        if tag_end < 0:
            raise _RuleSyntaxError(f"rule missing '{{': {rule.name}")
        rule.tags = rest[1:tag_end].split()
        rest = rest[tag_end:]

    depth = 0
    end_idx = -1
    for i, ch in enumerate(rest):
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                end_idx = i
                break
    if end_idx < 0:
        raise _RuleSyntaxError(f"rule missing closing '}}': {rule.name}")

    body = rest[1:end_idx]
    _parse_meta(body, rule)
    _parse_strings(body, rule)
    _parse_condition(body, rule)
    return rule, rest[end_idx + 1:]


def _parse_meta(body: str, rule: Rule) -> None:
    section = _extract_section(body, "meta")
    for line in section.split("\n"):
        line = line.strip()
        if not line or "=" not in line:
            continue
        key, val = line.split("=", 1)
        rule.meta[key.strip()] = val.strip().strip('"')


def _parse_strings(body: str, rule: Rule) -> None:
    section = _extract_section(body, "strings")
    for line in section.split("\n"):
        line = line.strip()
        if not line.startswith("$") or "=" not in line:
            continue
        ident, val_part = (part.strip() for part in line.split("=", 1))
        sd = StringDef(id=ident)

        if val_part.startswith("{"):
            end_brace = val_part.find("}")
            if end_brace < 0:
                continue
            sd.is_hex = True
            _parse_hex_pattern(val_part[1:end_brace].strip(), sd)
            _parse_modifiers(val_part[end_brace + 1:], sd)
        elif val_part.startswith("/"):
            end_slash = val_part.rfind("/")
            if end_slash <= 0:
                continue
            pattern = val_part[1:end_slash]
            modifiers = val_part[end_slash + 1:]
            flags = 0
            if "i" in modifiers or "nocase" in modifiers.lower():
                flags = re.IGNORECASE
            try:
                sd.regex = re.compile(pattern.encode("utf-8"), flags)
                sd.is_regex = True
            except re.error:
                pass
            _parse_modifiers(modifiers, sd)
        elif val_part.startswith('"'):
            text = _extract_quoted_string(val_part)
            sd.value = text.encode("utf-8")
            _parse_modifiers(val_part[val_part.rfind('"') + 1:], sd)
            if sd.wide:
                sd.value = text.encode("utf-16-le", errors="surrogatepass")
            if sd.nocase and not sd.wide:
                sd.value = text.lower().encode("utf-8")

        rule.strings.append(sd)


def _parse_condition(body: str, rule: Rule) -> None:
    section = _extract_section(body, "condition")
    rule.condition = section.strip() if section else "any of them"


def _extract_section(body: str, name: str) -> str:
    marker = name + ":"
    idx = body.find(marker)
    if idx < 0:
        return ""
    start = idx + len(marker)
    end = len(body)
    for other in _SECTIONS:
        if other == marker:
            continue
        pos = body.find(other, start)
        if 0 <= pos < end:
            end = pos
    return body[start:end]


def _parse_hex_pattern(hex_str: str, sd: StringDef) -> None:
    pattern = bytearray()
    mask = bytearray()
    has_wild = False
    for token in hex_str.replace("\n", " ").replace("\r", " ").split():
        if token in ("??", "?"):
            pattern.append(0x00)
            mask.append(0x00)
            has_wild = True
        elif len(token) == 2:
            try:
                pattern.append(bytes.fromhex(token)[0])
            except ValueError:
                continue
            mask.append(0xFF)
        # alternations and jumps are not supported and are skipped
    sd.value = bytes(pattern)
    sd.wild_mask = bytes(mask)
    sd.has_wild = has_wild


def _parse_modifiers(text: str, sd: StringDef) -> None:
    lower = text.lower()
    if "nocase" in lower:
        sd.nocase = True
    if "wide" in lower:
        sd.wide = True
    if "ascii" in lower:
        sd.ascii = True
    if "fullword" in lower:
        sd.fullword = True


_ESCAPES = {"n": "\n", "r": "\r", "t": "\t", "\\": "\\", '"': '"'}


def _extract_quoted_string(text: str) -> str:
    if not text.startswith('"'):
        return ""
    out: list[str] = []
    escaped = False
    for ch in text[1:]:
        if escaped:
            out.append(_ESCAPES.get(ch, "\\" + ch))
            escaped = False
        elif ch == "\\":
            escaped = True
        elif ch == '"':
            break
        else:
            out.append(ch)
    return "".join(out)


def _remove_comments(text: str) -> str:
    while True:
        start = text.find("/*")
        if start < 0:
            break
        end = text.find("*/", start)
        if end < 0:
            break
        text = text[:start] + text[end + 2:]

    lines = text.split("\n")
    for i, line in enumerate(lines):
        idx = line.find("//")
        if idx >= 0 and not _is_inside_string(line, idx):
            lines[i] = line[:idx]
    return "\n".join(lines)


def _is_inside_string(line: str, pos: int) -> bool:
    inside = False
    for i, ch in enumerate(line[:pos]):
        if ch == '"' and (i == 0 or line[i - 1] != "\\"):
            inside = not inside
    return inside