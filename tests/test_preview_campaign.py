"""
Tests for the campaign preview script

Tests cover:
- Creating a record from params JSON
- Messages when --build-txn has nothing to build or no escrow
"""

import json
import sys
from dataclasses import asdict

import pytest

from scripts import preview_campaign


class TestPreviewCampaign:
    """Test suite for preview_campaign.main."""

    @pytest.fixture
    def run(self, monkeypatch, capsys):
        def _run(*argv):
            monkeypatch.setattr(sys, "argv", ["preview_campaign.py", *argv])
            preview_campaign.main()
            return capsys.readouterr().out

        return _run

    @pytest.fixture
    def params_file(self, params, tmp_path):
        path = tmp_path / "params.json"
        path.write_text(json.dumps(asdict(params)))
        return path

    def test_create_writes_record(self, run, params_file, tmp_path, now):
        # Arrange
        out = tmp_path / "campaign.json"

        # Act
        output = run("--record", str(params_file), "--action", "create",
                     "--now", str(now), "--out", str(out))

        # Assert
        assert "Action 'create' accepted" in output
        assert json.loads(out.read_text())["status"] == "ACTIVE"

    def test_create_with_build_txn_reports_nothing_to_build(self, run, params_file, now):
        output = run("--record", str(params_file), "--action", "create",
                     "--now", str(now), "--build-txn")

        assert "no transactions to build" in output

    def test_build_txn_requires_escrow(self, run, campaign, tmp_path, now):
        # Arrange
        path = tmp_path / "campaign.json"
        path.write_text(json.dumps(campaign.to_dict()))

        # Act
        output = run("--record", str(path), "--action", "pause", "--role", "creator",
                     "--now", str(now), "--build-txn")

        # Assert
        assert "Set --escrow to build transactions" in output
