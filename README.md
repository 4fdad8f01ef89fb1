# procir

Building blocks for process-centric incident response. The package has no
third-party dependencies.

## Modules

- `procir.models`: dataclasses describing processes (`ProcessRecord`),
  persistence triggers (`TriggerEntry`, `TriggerType`), unified execution
  objects (`ExecutionObject`), forensic artifacts (`ForensicEntry`,
  `ForensicSource`, `ModuleRecord`), loaded modules (`ModuleInfo`,
  `ModuleAnalysis`), memory regions (`MemoryRegion`, `MemoryAnalysis`),
  event-log evidence (`EventEvidence`, `EventCollectConfig`), IOC
  monitoring (`IOCEntry`, `IOCHit`, `MonitorStatus`) and correlation
  results (`TimelineEvent`, `BehaviorChain`, `Indicator`, `ProcessNode`,
  `DirCluster`, `CorrelationResult`). `calc_risk_level(score)` maps a score
  to `Critical` (80+), `High` (60+), `Medium` (40+), `Suspicious` (20+) or
  `Low`.
- `procir.yara_rules`: a parser for a practical subset of the YARA rule
  language. `parse_rules(source)` returns `(rules, errors)`;
  `load_rules(path)` reads a file, or searches a directory recursively for
  `.yar`, `.yara` and `.rule` files, and returns a `RuleSet`. It raises
  `RuleLoadError` when the path does not exist, or when no rule parsed but
  errors were reported (the partial `RuleSet` is on the exception's
  `rule_set` attribute). Text strings (with `\n`, `\r`, `\t`, `\\`, `\"`
  escapes), hex strings with `??` wildcards, and regex strings are
  supported, as are the `nocase`, `wide`, `ascii` and `fullword`
  modifiers. Hex alternations and jumps are skipped.
- `procir.yara_scanner`: `scan_data(data, target_path, rule_set)` and
  `scan_file(path, rule_set)` return a list of `YaraHit`. `scan_file`
  returns no hits for missing files, directories, empty files and files
  over 100 MB. `evaluate_condition` understands `any of them`,
  `all of them`, `any of ($prefix*)`, `all of ($prefix*)` (satisfied as
  soon as any string with that prefix matched), `N of ...` (counted over
  all matched strings), `and` / `or` / `not` combinations of string ids,
  and simple `filesize` comparisons (`<`, `>`, `<=`, `>=`, `==`, with
  optional `KB` / `MB` suffixes). A condition it cannot parse is treated as
  true when any string matched. A rule without strings matches only
  through a `filesize` condition.
- `procir.yara_cache`: `ScanCache`, which keys results on path, size,
  modification time and the rule-set hash, so a changed file is scanned
  again.
- `procir.yara_engine`: `Engine`, built with `new_engine(rule_path)` or
  `Engine(rule_set)`. `scan_single_file(path)` scans through the cache;
  `scan_objects(objects)` scans, on up to four threads, each
  `ExecutionObject` that `should_scan` selects and whose extension
  `is_scannable` accepts, then folds the hits in with `apply_hits`.
  `rule_count()`, `enabled()` and `errors()` report on the loaded rules.

## Scoring of rule hits

`apply_hits(obj, hits)` gives each hit 20 points, or 30 when one of its
tags is high-risk (for example `backdoor`, `loader`, `ransomware`,
`stealer`) or its `severity` meta is `critical` or `high`. Two or more
hits add 15; network activity adds 20; persistence triggers add 15; a
running process adds 15. The total is stored in `yara_score`, added to
`final_score`, and `risk_level` is recomputed. A reason is appended for
each bonus and for each hit (`YARA: <rule> [tags]`).

## Example

```python
from procir.yara_rules import parse_rules, RuleSet
from procir.yara_scanner import scan_data

rules, errors = parse_rules('''
rule Demo : loader
{
    strings:
        $a = "evil" nocase
        $b = { 4D 5A ?? 00 }
    condition:
        $a or $b
}
''')
hits = scan_data(b"...EVIL...", "sample.bin", RuleSet(rules=rules))
for hit in hits:
    print(hit.rule_name, hit.tags, hit.strings)   # Demo ['loader'] ['$a']
```

To scan files on disk, build an engine from a rule file or directory:

```python
from procir.yara_engine import new_engine

engine = new_engine("rules/")
if engine is not None:
    print(engine.rule_count(), "rules loaded")
    print(engine.scan_single_file("suspect.exe"))
```

`new_engine` returns `None` when the path is empty or no rule could be
loaded.

## What this package does not do

It has no command-line program and no collectors: it does not enumerate
processes, read the registry, scheduled tasks, services, event logs or
process memory, and it does not fill in the model classes itself. Those
values must be supplied by the caller. The rule scanner is a simplified
matcher, not a full YARA implementation: it has no modules, string
counts, offsets, hex jumps or alternations.

## Running the tests

```
pip install .[test]
pytest
```