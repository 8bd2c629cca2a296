#!/usr/bin/env python3
"""
Tests for deployment record loading and positional resolution
"""

import json
import os

import pytest

from postdeploy.deployment_record import (
    DEFAULT_CONTRACT_ORDER,
    CreationEvent,
    DeploymentRecord,
    address_by_name,
    confirm_by_implementation,
    latest_broadcast_path,
    load_record,
    proxy_implementations,
    resolve,
)
from postdeploy.errors import DeploymentRecordUnavailable


def address(n: int) -> str:
    return f"0x{n:040x}"


def implementation(name: str, n: int) -> CreationEvent:
    return CreationEvent("CREATE", name, address(0x1000 + n))


def proxy(n: int, impl_n: int) -> CreationEvent:
    return CreationEvent("CREATE", "ERC1967Proxy", address(n), (address(0x1000 + impl_n), "0x"))


def full_record() -> DeploymentRecord:
    """Implementation then proxy for each contract, plus calls in between"""
    events = []
    for i, name in enumerate(DEFAULT_CONTRACT_ORDER, 1):
        events.append(implementation(name, i))
        events.append(proxy(i, i))
        events.append(CreationEvent("CALL", None, None))
    return DeploymentRecord(tuple(events))


def broadcast_json(record: DeploymentRecord) -> dict:
    return {
        "transactions": [
            {
                "hash": None,
                "transactionType": e.kind,
                "contractName": e.logical_name,
                "contractAddress": e.address,
                "arguments": list(e.arguments) or None,
            }
            for e in record.events
        ],
        "chain": 43113,
    }


class TestResolve:
    """Test class for resolve"""

    def test_full_deployment(self):
        """Seven proxies map onto the seven names in order"""
        resolved = resolve(full_record(), DEFAULT_CONTRACT_ORDER)
        assert list(resolved) == list(DEFAULT_CONTRACT_ORDER)
        for i, name in enumerate(DEFAULT_CONTRACT_ORDER, 1):
            assert resolved[name] == address(i)

    def test_fewer_events_than_names(self):
        """Names beyond the proxy count are absent, not zero"""
        record = DeploymentRecord((proxy(1, 1), proxy(2, 2), proxy(3, 3)))
        resolved = resolve(record, DEFAULT_CONTRACT_ORDER)
        assert resolved == {"Roles": address(1), "Brands": address(2), "Wrappers": address(3)}
        assert "Payments" not in resolved

    def test_surplus_events_ignored(self):
        record = DeploymentRecord(tuple(proxy(i, i) for i in range(1, 6)))
        assert resolve(record, ("A", "B")) == {"A": address(1), "B": address(2)}

    def test_min_of_events_and_names(self):
        """Result size is min(N, M) for any N and M"""
        for n in range(0, 10):
            record = DeploymentRecord(tuple(proxy(i, i) for i in range(1, n + 1)))
            resolved = resolve(record, DEFAULT_CONTRACT_ORDER)
            assert len(resolved) == min(n, len(DEFAULT_CONTRACT_ORDER))

    def test_empty_record(self):
        assert resolve(DeploymentRecord(), DEFAULT_CONTRACT_ORDER) == {}

    def test_only_proxy_creations_count(self):
        """Implementation creations, calls and proxy calls are not positional"""
        record = DeploymentRecord((
            implementation("Roles", 1),
            CreationEvent("CALL", "ERC1967Proxy", address(99)),
            CreationEvent("CREATE", "ERC1967Proxy", None),
            proxy(5, 1),
        ))
        assert resolve(record, DEFAULT_CONTRACT_ORDER) == {"Roles": address(5)}


class TestConfirmByImplementation:
    """Name-based cross-check of positional results"""

    def test_consistent_deployment(self):
        record = full_record()
        assert confirm_by_implementation(record, resolve(record)) == []

    def test_reordered_deployment_detected(self):
        """Swapping two proxies is reported for both names"""
        events = [implementation("Roles", 1), implementation("Brands", 2), proxy(20, 2), proxy(10, 1)]
        record = DeploymentRecord(tuple(events))
        resolved = resolve(record, ("Roles", "Brands"))
        assert confirm_by_implementation(record, resolved) == ["Roles", "Brands"]

    def test_unknown_names_are_skipped(self):
        record = DeploymentRecord((proxy(1, 1),))
        assert confirm_by_implementation(record, {"Roles": address(1)}) == []

    def test_address_by_name_through_proxy(self):
        record = DeploymentRecord((implementation("Sales", 6), proxy(60, 6)))
        assert address_by_name(record, "Sales") == address(60)

    def test_address_by_name_without_proxy(self):
        record = DeploymentRecord((implementation("Sales", 6),))
        assert address_by_name(record, "Sales") == address(0x1006)
        assert address_by_name(record, "Roles") is None

    def test_proxy_implementations(self):
        record = DeploymentRecord((proxy(1, 7),))
        assert proxy_implementations(record) == {address(1): address(0x1007)}


class TestLoading:
    """Broadcast file discovery and parsing"""

    def test_load_record(self, tmp_path):
        path = tmp_path / "run-latest.json"
        path.write_text(json.dumps(broadcast_json(full_record())))

        record = load_record(str(path))
        assert record.chain_id == 43113
        assert record.source == str(path)
        assert len(record.proxy_creations()) == 7
        assert resolve(record)["Memberships"] == address(7)

    def test_missing_file(self, tmp_path):
        with pytest.raises(DeploymentRecordUnavailable):
            load_record(str(tmp_path / "nope.json"))

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "run-latest.json"
        path.write_text("{not json")
        with pytest.raises(DeploymentRecordUnavailable):
            load_record(str(path))

    def test_malformed_structure(self, tmp_path):
        path = tmp_path / "run-latest.json"
        path.write_text(json.dumps({"receipts": []}))
        with pytest.raises(DeploymentRecordUnavailable, match="malformed"):
            load_record(str(path))

    def test_latest_broadcast_prefers_run_latest(self, tmp_path):
        network_dir = tmp_path / "43113"
        network_dir.mkdir()
        (network_dir / "run-1700000000.json").write_text("{}")
        (network_dir / "run-latest.json").write_text("{}")
        (network_dir / "dry-run").mkdir()
        (network_dir / "dry-run" / "run-latest.json").write_text("{}")

        path = latest_broadcast_path(str(tmp_path), 43113)
        assert path == os.path.join(str(network_dir), "run-latest.json")

    def test_latest_broadcast_falls_back_to_dry_run(self, tmp_path):
        dry_run = tmp_path / "31337" / "dry-run"
        dry_run.mkdir(parents=True)
        (dry_run / "run-1700000001.json").write_text("{}")
        (dry_run / "run-1700000000.json").write_text("{}")

        path = latest_broadcast_path(str(tmp_path), 31337)
        assert path == os.path.join(str(dry_run), "run-1700000001.json")

    def test_no_broadcast(self, tmp_path):
        with pytest.raises(DeploymentRecordUnavailable):
            latest_broadcast_path(str(tmp_path), 43114)
