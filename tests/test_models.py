import pytest

from procir.models import (
    BehaviorChain,
    CorrelationResult,
    DirCluster,
    EventCollectConfig,
    EventEvidence,
    ExecutionObject,
    ForensicEntry,
    ForensicSource,
    IOCHit,
    MemoryAnalysis,
    ModuleAnalysis,
    ModuleInfo,
    ProcessNode,
    ProcessRecord,
    TriggerEntry,
    TriggerType,
    calc_risk_level,
)


@pytest.mark.parametrize(
    "score, level",
    [
        (100, "Critical"),
        (80, "Critical"),
        (79, "High"),
        (60, "High"),
        (59, "Medium"),
        (40, "Medium"),
        (39, "Suspicious"),
        (20, "Suspicious"),
        (19, "Low"),
        (0, "Low"),
        (-5, "Low"),
    ],
)
def test_calc_risk_level_thresholds(score, level):
    assert calc_risk_level(score) == level


def test_calc_risk_level_is_monotonic():
    order = ["Low", "Suspicious", "Medium", "High", "Critical"]
    ranks = [order.index(calc_risk_level(s)) for s in range(-10, 120)]
    assert ranks == sorted(ranks)


def test_trigger_type_values():
    assert TriggerType.RUN_KEY.value == "RunKey"
    assert TriggerType.WINLOGON == "Winlogon"
    assert TriggerType("IFEO") is TriggerType.IFEO


def test_forensic_source_values():
    assert ForensicSource.PREFETCH == "Prefetch"
    assert ForensicSource("RecentFile") is ForensicSource.RECENT_FILE
    with pytest.raises(ValueError):
        ForensicSource("Unknown")


def test_event_collect_config_defaults():
    cfg = EventCollectConfig()
    assert cfg.max_age_days == 3
    assert cfg.max_events == 2000
    assert cfg.include_sysmon is False


def test_list_fields_are_independent_between_instances():
    first = ExecutionObject()
    second = ExecutionObject()
    first.reasons.append("a")
    first.pids.append(1)
    assert second.reasons == []
    assert second.pids == []


def test_process_node_tree():
    root = ProcessNode(pid=4, name="System")
    child = ProcessNode(pid=100, ppid=4, name="smss.exe")
    root.children.append(child)
    assert root.children[0].ppid == root.pid
    assert ProcessNode().children == []


def test_correlation_result_holds_items():
    chain = BehaviorChain(pattern_name="p", evidence=["e1"], object_paths=["x"])
    cluster = DirCluster(directory="d", files=["d/a.exe"], count=1)
    result = CorrelationResult(chains=[chain], dir_clusters=[cluster])
    assert result.chains[0].evidence == ["e1"]
    assert result.dir_clusters[0].count == len(result.dir_clusters[0].files)
    assert result.timeline == []


def test_execution_object_links_records():
    trigger = TriggerEntry(type=TriggerType.SERVICE, name="svc", score=10)
    record = ProcessRecord(pid=42, name="svc.exe")
    event = EventEvidence(source="System", event_id=7045, service_name="svc")
    forensic = ForensicEntry(source=ForensicSource.PREFETCH, exe_name="SVC.EXE")
    obj = ExecutionObject(
        path="C:\\svc.exe",
        triggers=[trigger],
        processes=[record],
        events=[event],
        forensics=[forensic],
        trigger_count=1,
    )
    assert obj.triggers[0].type is TriggerType.SERVICE
    assert obj.processes[0].pid == 42
    assert obj.events[0].event_id == 7045
    assert obj.forensics[0].source is ForensicSource.PREFETCH
    assert obj.yara_hits is None
    assert obj.first_seen is None


def test_module_analysis_counts():
    mods = [ModuleInfo(name="a.dll", score=30), ModuleInfo(name="b.dll", score=10)]
    analysis = ModuleAnalysis(
        pid=1, suspicious_modules=mods, suspicious_count=len(mods)
    )
    assert analysis.suspicious_count == 2
    assert [m.name for m in analysis.suspicious_modules] == ["a.dll", "b.dll"]


def test_memory_analysis_defaults_and_equality():
    assert MemoryAnalysis(pid=5) == MemoryAnalysis(pid=5)
    assert MemoryAnalysis().all_regions == []
    assert MemoryAnalysis(pid=5) != MemoryAnalysis(pid=6)


def test_ioc_hit_defaults():
    hit = IOCHit(ioc="example.com", ioc_type="domain", match_source="dns")
    assert hit.remote_port == 0
    assert hit.is_lolbin is False
    assert hit.ioc == "example.com"