"""Data models shared by collectors, scoring and correlation."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional


def calc_risk_level(score: int) -> str:
    """Return the risk level name for a score."""
    if score >= 80:
        return "Critical"
    if score >= 60:
        return "High"
    if score >= 40:
        return "Medium"
    if score >= 20:
        return "Suspicious"
    return "Low"


# ---------------------------------------------------------------------------
# Correlation
# ---------------------------------------------------------------------------


@dataclass
class TimelineEvent:
    """A single event on the investigation timeline."""

    time: str = ""  # 2006-01-02 15:04:05
    type: str = ""  # execution / trigger / file / network / module / eventlog
    object_path: str = ""
    object_name: str = ""
    detail: str = ""
    score: int = 0
    source: str = ""


@dataclass
class BehaviorChain:
    """A detected attack pattern."""

    pattern_name: str = ""
    pattern_score: int = 0
    evidence: list[str] = field(default_factory=list)
    object_paths: list[str] = field(default_factory=list)


@dataclass
class Indicator:
    """An extracted indicator of compromise."""

    type: str = ""  # ip / domain / url / base64 / filepath
    value: str = ""
    source_object: str = ""
    context: str = ""


@dataclass
class ProcessNode:
    """A node in the process tree."""

    pid: int = 0
    ppid: int = 0
    name: str = ""
    path: str = ""
    score: int = 0
    level: str = ""
    children: list[ProcessNode] = field(default_factory=list)


@dataclass
class DirCluster:
    """A group of suspicious files in the same directory."""

    directory: str = ""
    files: list[str] = field(default_factory=list)
    file_types: list[str] = field(default_factory=list)  # exe, dll, script
    count: int = 0
    score: int = 0
    reasons: list[str] = field(default_factory=list)


@dataclass
class CorrelationResult:
    """All correlation-phase analysis results."""

    timeline: list[TimelineEvent] = field(default_factory=list)
    chains: list[BehaviorChain] = field(default_factory=list)
    indicators: list[Indicator] = field(default_factory=list)
    process_tree: list[ProcessNode] = field(default_factory=list)
    dir_clusters: list[DirCluster] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Event log evidence
# ---------------------------------------------------------------------------


@dataclass
class EventEvidence:
    """A single high-value Windows event log entry."""

    source: str = ""  # Security / System / PowerShell / TaskScheduler / WMI / Sysmon
    event_id: int = 0
    time: str = ""
    computer: str = ""
    user: str = ""
    description: str = ""

    process_path: str = ""
    command_line: str = ""
    parent_path: str = ""
    process_id: str = ""

    target_path: str = ""
    service_name: str = ""
    task_name: str = ""

    ip_address: str = ""
    port: str = ""
    domain: str = ""

    logon_type: str = ""

    score: int = 0
    reasons: list[str] = field(default_factory=list)

    linked_object: str = ""


@dataclass
class EventCollectConfig:
    """Controls which events are collected."""

    max_age_days: int = 3
    max_events: int = 2000
    offline_path: str = ""
    include_sysmon: bool = False


# ---------------------------------------------------------------------------
# Forensics
# ---------------------------------------------------------------------------


class ForensicSource(str, Enum):
    """Origin of a forensic artifact."""

    PREFETCH = "Prefetch"
    RECENT_FILE = "RecentFile"
    EVENT_LOG = "EventLog"
    MODULE = "Module"


@dataclass
class ForensicEntry:
    """A single historical execution artifact."""

    source: Optional[ForensicSource] = None
    path: str = ""
    detail: str = ""

    exe_name: str = ""
    run_count: int = 0
    last_run_time: str = ""
    first_seen: str = ""

    event_id: int = 0
    event_time: str = ""
    event_source: str = ""
    command_line: str = ""

    process_pid: int = 0
    process_name: str = ""
    module_path: str = ""
    module_signed: bool = False
    module_signer: str = ""

    file_mod_time: str = ""
    file_size: int = 0
    file_type: str = ""  # exe / dll / script

    score: int = 0
    reasons: list[str] = field(default_factory=list)


@dataclass
class ModuleRecord:
    """A loaded DLL in a process, with analysis results."""

    pid: int = 0
    process_name: str = ""
    module_path: str = ""
    module_name: str = ""

    signed: bool = False
    sign_valid: bool = False
    signer: str = ""
    is_user_path: bool = False
    is_temp_path: bool = False
    is_masquerade: bool = False

    score: int = 0
    reasons: list[str] = field(default_factory=list)


# ---------------------------------------------------------------------------
# IOC monitoring
# ---------------------------------------------------------------------------


@dataclass
class IOCEntry:
    """A single indicator being monitored."""

    value: str = ""
    type: str = ""  # ip / domain
    confidence: str = ""  # high / medium / low
    source: str = ""
    comment: str = ""


@dataclass
class IOCHit:
    """A single indicator match event."""

    time: str = ""
    ioc: str = ""
    ioc_type: str = ""
    ioc_comment: str = ""

    pid: int = 0
    process_name: str = ""
    process_path: str = ""
    command_line: str = ""
    parent_name: str = ""
    user: str = ""
    signed: bool = False
    signer: str = ""

    remote_ip: str = ""
    remote_port: int = 0
    protocol: str = ""

    match_source: str = ""  # tcp / udp / dns
    confidence: str = ""

    is_lolbin: bool = False
    is_user_path: bool = False


@dataclass
class MonitorStatus:
    """State of a monitoring session."""

    running: bool = False
    start_time: str = ""
    elapsed: str = ""
    duration: int = 0  # configured duration in seconds
    ioc_count: int = 0
    hit_count: int = 0
    hit_pids: int = 0
    cycle_count: int = 0


# ---------------------------------------------------------------------------
# Memory
# ---------------------------------------------------------------------------


@dataclass
class MemoryRegion:
    """A single virtual memory region of a process."""

    base_address: str = ""
    size: int = 0
    size_human: str = ""
    protect: str = ""
    protect_raw: int = 0
    type: str = ""  # MEM_PRIVATE / MEM_IMAGE / MEM_MAPPED
    type_raw: int = 0
    state: str = ""  # MEM_COMMIT / MEM_RESERVE / MEM_FREE
    is_executable: bool = False
    is_writable: bool = False
    is_rwx: bool = False

    is_private_exec: bool = False
    is_no_image_exec: bool = False
    is_suspicious: bool = False
    reason: str = ""


@dataclass
class MemoryAnalysis:
    """Complete memory analysis result for a process."""

    pid: int = 0
    process_name: str = ""
    path: str = ""
    user: str = ""
    signed: bool = False
    signer: str = ""

    total_regions: int = 0
    committed_regions: int = 0
    executable_regions: int = 0

    rwx_count: int = 0
    private_exec_count: int = 0
    no_image_exec_count: int = 0
    suspicious_count: int = 0

    all_regions: list[MemoryRegion] = field(default_factory=list)
    suspicious_regions: list[MemoryRegion] = field(default_factory=list)

    score: int = 0
    risk_level: str = ""
    reasons: list[str] = field(default_factory=list)

    error: str = ""


# ---------------------------------------------------------------------------
# Modules
# ---------------------------------------------------------------------------


@dataclass
class ModuleInfo:
    """An analysed DLL loaded by a process."""

    path: str = ""
    name: str = ""

    signed: bool = False
    signer: str = ""

    is_system_dll_name: bool = False
    is_system_path: bool = False
    is_user_path: bool = False
    is_temp_path: bool = False
    is_same_dir_as_exe: bool = False

    score: int = 0
    reasons: list[str] = field(default_factory=list)


@dataclass
class ModuleAnalysis:
    """Module-level analysis result for a process."""

    pid: int = 0
    exe_name: str = ""
    exe_path: str = ""
    exe_signed: bool = False
    exe_signer: str = ""

    suspicious_modules: list[ModuleInfo] = field(default_factory=list)
    total_modules: int = 0
    suspicious_count: int = 0

    has_dll_hijack: bool = False
    dll_hijack_score: int = 0

    score: int = 0
    reasons: list[str] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Processes, triggers and execution objects
# ---------------------------------------------------------------------------


@dataclass
class ProcessRecord:
    """Collected and analysed data for a single process."""

    pid: int = 0
    ppid: int = 0
    name: str = ""
    path: str = ""
    command_line: str = ""
    user: str = ""
    start_time: str = ""

    file_exists: bool = False
    file_size: int = 0
    file_mod_time: str = ""
    sha256: str = ""
    md5: str = ""

    signed: bool = False
    sign_valid: bool = False
    signer: str = ""
    company: str = ""
    product: str = ""
    original_name: str = ""
    file_version: str = ""

    parent_name: str = ""
    is_lolbin: bool = False
    path_abnormal: bool = False
    is_masquerade: bool = False
    original_name_mismatch: bool = False
    abnormal_parent_chain: bool = False

    has_network: bool = False
    remote_ips: list[str] = field(default_factory=list)
    remote_ports: list[int] = field(default_factory=list)
    has_public_ip: bool = False

    persistence: list[str] = field(default_factory=list)

    risk_score: int = 0
    risk_level: str = ""
    reasons: list[str] = field(default_factory=list)


class TriggerType(str, Enum):
    """Source of a trigger entry."""

    RUN_KEY = "RunKey"
    STARTUP = "Startup"
    TASK = "Task"
    SERVICE = "Service"
    WMI = "WMI"
    IFEO = "IFEO"
    WINLOGON = "Winlogon"


@dataclass
class TriggerEntry:
    """A single persistence or trigger mechanism."""

    type: Optional[TriggerType] = None
    name: str = ""
    path: str = ""
    command_line: str = ""
    detail: str = ""

    task_author: str = ""
    task_description: str = ""
    task_trigger_type: str = ""  # logon / time / idle / event / boot
    task_run_as: str = ""
    task_hidden: bool = False
    task_last_run: str = ""
    task_next_run: str = ""
    task_last_result: str = ""
    task_interval: str = ""

    service_start_type: str = ""  # Auto / Manual / Disabled / Boot / System
    service_account: str = ""
    service_state: str = ""  # Running / Stopped
    service_dll: str = ""

    wmi_filter_name: str = ""
    wmi_filter_query: str = ""
    wmi_consumer_name: str = ""
    wmi_consumer_cmd: str = ""

    score: int = 0
    reasons: list[str] = field(default_factory=list)


@dataclass
class ExecutionObject:
    """Unified model merging process data and trigger data."""

    path: str = ""
    command_line: str = ""
    obj_type: str = ""  # exe / dll / script / command

    sources: list[str] = field(default_factory=list)
    source_detail: str = ""

    exists: bool = False
    file_size: int = 0
    sha256: str = ""
    md5: str = ""

    signed: bool = False
    sign_valid: bool = False
    signer: str = ""
    company: str = ""
    product: str = ""
    original_name: str = ""

    location_type: str = ""  # System32 / ProgramFiles / UserDir / Temp / ProgramData / Other
    is_lolbin: bool = False

    is_running: bool = False
    pids: list[int] = field(default_factory=list)
    process_names: list[str] = field(default_factory=list)
    network_observed: bool = False
    remote_ips: list[str] = field(default_factory=list)
    has_public_ip: bool = False

    trigger_count: int = 0
    trigger_types: list[str] = field(default_factory=list)
    triggers: list[TriggerEntry] = field(default_factory=list)

    processes: list[ProcessRecord] = field(default_factory=list)

    forensic_hits: int = 0
    forensic_score: int = 0
    has_prefetch: bool = False
    has_event_log: bool = False
    has_recent_file: bool = False
    suspicious_modules: int = 0
    forensics: list[ForensicEntry] = field(default_factory=list)

    module_analyses: list[ModuleAnalysis] = field(default_factory=list)
    suspicious_module_count: int = 0
    has_dll_hijack: bool = False
    dll_hijack_score: int = 0

    yara_matched: bool = False
    yara_hits: Any = None
    yara_score: int = 0

    event_count: int = 0
    event_score: int = 0
    first_event_time: str = ""
    last_event_time: str = ""
    events: list[EventEvidence] = field(default_factory=list)

    execution_score: int = 0
    trigger_score: int = 0
    synergy_bonus: int = 0
    white_reduction: int = 0
    final_score: int = 0
    risk_level: str = ""
    reasons: list[str] = field(default_factory=list)

    first_seen: Optional[datetime] = None
    last_seen: Optional[datetime] = None