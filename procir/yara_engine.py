"""Rule scanning of execution objects, with caching and score fusion."""

from __future__ import annotations

import re
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, Optional, Sequence

from .models import ExecutionObject, calc_risk_level
from .yara_cache import ScanCache
from .yara_rules import RuleLoadError, RuleSet, load_rules
from .yara_scanner import YaraHit, scan_file

_MAX_WORKERS = 4

_HIGH_RISK_TAGS = frozenset(
    {
        "backdoor", "loader", "inject", "credential", "beacon", "ransomware",
        "trojan", "malware", "exploit", "webshell", "rat", "keylogger",
        "stealer", "miner", "rootkit",
    }
)

_SCANNABLE_EXTENSIONS = frozenset(
    {
        ".exe", ".dll", ".sys", ".scr", ".com",
        ".ps1", ".vbs", ".js", ".hta",
        ".bat", ".cmd", ".sct", ".wsf",
        ".msi", ".pif",
    }
)

_REASON_NETWORK = "YARA hit with network activity"
_REASON_PERSIST = "YARA hit with persistence"
_REASON_RUNNING = "YARA hit on a running process"
_REASON_PREFIX = "YARA:"


class Engine:
    """Scans files and execution objects with a loaded rule set."""

    def __init__(self, rule_set: Optional[RuleSet]) -> None:
        self._rule_set = rule_set
        self._cache = ScanCache(rule_set.hash if rule_set is not None else "")

    def scan_objects(self, objects: Iterable[ExecutionObject]) -> None:
        """Scan every object worth scanning and fold the results into it."""
        if self._rule_set is None:
            return
        targets = [obj for obj in objects if should_scan(obj)]
        if not targets:
            return
        with ThreadPoolExecutor(max_workers=_MAX_WORKERS) as pool:
            list(pool.map(self._scan_object, targets))

    def scan_single_file(self, path: str) -> list[YaraHit]:
        """Scan one file, using the cache when possible."""
        if self._rule_set is None:
            return []
        cached = self._cache.get(path)
        if cached is not None:
            return cached
        hits = scan_file(path, self._rule_set)
        self._cache.set(path, hits)
        return hits

    def _scan_object(self, obj: ExecutionObject) -> None:
        if not obj.path or not obj.exists or not is_scannable(obj.path):
            return
        apply_hits(obj, self.scan_single_file(obj.path))

    def rule_count(self) -> int:
        """Number of loaded rules."""
        return len(self._rule_set.rules) if self._rule_set is not None else 0

    def enabled(self) -> bool:
        """Whether any rules are loaded."""
        return self.rule_count() > 0

    def errors(self) -> list[str]:
        """Errors collected while loading rules."""
        return list(self._rule_set.errors) if self._rule_set is not None else []


def new_engine(rule_path: str) -> Optional[Engine]:
    """Create an engine from a rule file or directory; None if nothing loads."""
    if not rule_path:
        return None
    try:
        rule_set = load_rules(rule_path)
    except (RuleLoadError, OSError):
        return None
    if not rule_set.rules:
        return None
    return Engine(rule_set)


def _rule_score(hit: YaraHit) -> int:
    score = 20
    if any(tag.lower() in _HIGH_RISK_TAGS for tag in hit.tags):
        score = 30
    if hit.meta.get("severity", "").lower() in ("critical", "high"):
        score = 30
    return score


def apply_hits(obj: ExecutionObject, hits: Sequence[YaraHit]) -> None:
    """Record hits on an object and add their score to its final score."""
    if not hits:
        return

    obj.yara_matched = True
    obj.yara_hits = list(hits)

    score = sum(_rule_score(hit) for hit in hits)
    if len(hits) >= 2:
        score += 15

    if obj.network_observed:
        score += 20
        obj.reasons.append(_REASON_NETWORK)
    if obj.trigger_count > 0:
        score += 15
        obj.reasons.append(_REASON_PERSIST)
    if obj.is_running:
        score += 15
        obj.reasons.append(_REASON_RUNNING)

    obj.yara_score = score
    obj.final_score += score
    obj.risk_level = calc_risk_level(obj.final_score)

    for hit in hits:
        reason = f"{_REASON_PREFIX} {hit.rule_name}"
        if hit.tags:
            reason += " [" + ",".join(hit.tags) + "]"
        obj.reasons.append(reason)


def should_scan(obj: ExecutionObject) -> bool:
    """Decide whether an object is worth scanning."""
    if not obj.exists or not obj.path:
        return False
    if obj.location_type == "System32" and obj.signed and obj.sign_valid:
        return False
    return (
        obj.final_score >= 20
        or obj.trigger_count > 0
        or obj.forensic_hits > 0
        or obj.location_type in ("UserDir", "Temp", "ProgramData")
        or not obj.signed
    )


def is_scannable(path: str) -> bool:
    """Whether the file extension is one that gets scanned."""
    name = re.split(r"[\\/]", path)[-1]
    dot = name.rfind(".")
    ext = name[dot:].lower() if dot >= 0 else ""
    return ext in _SCANNABLE_EXTENSIONS