from pathlib import Path

import pytest

from schedsim.models import Process
from schedsim.validation import validate
from schedsim.workload_io import load_workload, normalize_records, records_to_processes


def test_load_json(tmp_path: Path):
    p = tmp_path / "w.json"
    p.write_text('[{"pid":"A","arrival_time":0,"burst_time":3,"priority":1},'
                 '{"pid":"B","arrival_time":1,"burst_time":2}]')
    procs = records_to_processes(load_workload(p))
    assert isinstance(procs[0], Process)
    assert procs[0].priority == 1
    assert procs[1].priority is None
    assert procs[1].arrival_time == 1


def test_load_json_object_with_processes_key(tmp_path: Path):
    p = tmp_path / "w.json"
    p.write_text('{"processes": [{"pid": "A", "arrival": 0, "burst": 3, "shareGroup": "ops", "tickets": 4}]}')
    (proc,) = records_to_processes(load_workload(p))
    assert proc.hints.share_group == "ops"
    assert proc.hints.tickets == 4


def test_load_json_rejects_scalar(tmp_path: Path):
    p = tmp_path / "w.json"
    p.write_text('"nope"')
    with pytest.raises(ValueError):
        load_workload(p)


def test_load_csv(tmp_path: Path):
    p = tmp_path / "w.csv"
    p.write_text("pid,arrival_time,burst_time,priority\nA,0,3,1\nB,1,2,\n")
    procs = records_to_processes(load_workload(p))
    assert procs[0].pid == "A"
    assert procs[0].burst_time == 3
    assert procs[1].priority is None


def test_load_csv_flexible_headers(tmp_path: Path):
    p = tmp_path / "w.csv"
    p.write_text("PID,Arrival,Burst,queue_level\nX,2,4,1\n")
    (record,) = load_workload(p)
    assert record == {"pid": "X", "arrival": 2, "burst": 4, "queueLevel": 1}


def test_unsupported_suffix(tmp_path: Path):
    p = tmp_path / "w.txt"
    p.write_text("")
    with pytest.raises(ValueError, match="Unsupported workload format"):
        load_workload(p)


def test_missing_columns_get_defaults():
    records = normalize_records([{}, {"burst": 5}])
    assert records == [
        {"pid": "P1", "arrival": 0, "burst": 1},
        {"pid": "P2", "arrival": 0, "burst": 5},
    ]


def test_unparseable_cells_are_left_for_the_validator(tmp_path: Path):
    p = tmp_path / "w.csv"
    p.write_text("pid,arrival,burst\nA,0,lots\n")
    records = load_workload(p)
    assert validate(records).error == "Invalid burst time for A. Must be > 0"


def test_non_mapping_rows_pass_through():
    records = normalize_records([{"pid": "A"}, 5])
    assert records[1] == 5
    assert validate(records).error == "Process must be an object"


def test_non_finite_cells_are_rejected(tmp_path: Path):
    p = tmp_path / "w.csv"
    p.write_text("pid,arrival,burst\nA,nan,2\n")
    assert validate(load_workload(p)).error == "Invalid arrival time for A"

    p.write_text("pid,arrival,burst\nA,0,inf\n")
    assert validate(load_workload(p)).error == "Invalid burst time for A. Must be > 0"
