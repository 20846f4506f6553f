"""
Tests for CLI commands — plan, reconcile, pack check and global options.
"""

import json
from pathlib import Path

import yaml
from click.testing import CliRunner

from rollplan.core.config.loader import load_cluster
from rollplan.core.persistence.audit import AuditWriter
from rollplan.main import cli

FROM = "2.2.0.0-2041"
TO = "2.3.0.0-2557"


def _files(workspace: Path) -> list[str]:
    return [
        "--cluster", str(workspace / "cluster.yml"),
        "--stacks", str(workspace / "stacks.yml"),
    ]


class TestCLIGlobal:
    """Tests for global CLI behavior."""

    def test_help(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "rollplan" in result.output
        for command in ("plan", "reconcile", "pack"):
            assert command in result.output

    def test_version(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output


class TestPlanCommand:
    def test_plan_pack_file(self, workspace: Path):
        runner = CliRunner()
        result = runner.invoke(cli, [
            "plan", str(workspace / "packs" / "upgrade-2.3.yml"),
            *_files(workspace), "--to", TO, "--from", FROM,
        ])
        assert result.exit_code == 0, result.output
        assert "Upgrade plan" in result.output
        assert "c1" in result.output
        assert "Groups: 6" in result.output
        assert "Upgrading ZOOKEEPER_SERVER on h1" in result.output
        assert "h3" in result.output  # unhealthy host listed

    def test_plan_directory_with_type(self, workspace: Path):
        runner = CliRunner()
        result = runner.invoke(cli, [
            "plan", str(workspace / "packs"),
            *_files(workspace), "--to", TO, "--type", "non-rolling",
        ])
        assert result.exit_code == 0, result.output
        assert "nonrolling-upgrade-2.3" in result.output

    def test_plan_downgrade_is_skippable(self, workspace: Path):
        runner = CliRunner()
        result = runner.invoke(cli, [
            "plan", str(workspace / "packs" / "upgrade-2.3.yml"),
            *_files(workspace), "--to", FROM, "--from", TO, "--direction", "downgrade",
        ])
        assert result.exit_code == 0, result.output
        assert "Downgrade plan" in result.output
        assert "[skippable]" in result.output

    def test_plan_json(self, workspace: Path):
        runner = CliRunner()
        result = runner.invoke(cli, [
            "-q", "plan", str(workspace / "packs" / "upgrade-2.3.yml"),
            *_files(workspace), "--to", TO, "--from", FROM, "--json",
        ])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["pack"] == "upgrade-2.3"
        assert [g["name"] for g in data["groups"]] == [
            "PRE_CLUSTER", "ZOOKEEPER", "CORE_MASTER", "CORE_SLAVES", "SERVICE_CHECK", "FINALIZE",
        ]

    def test_plan_services_filter(self, workspace: Path):
        runner = CliRunner()
        result = runner.invoke(cli, [
            "-q", "plan", str(workspace / "packs" / "upgrade-2.3.yml"),
            *_files(workspace), "--to", TO, "--from", FROM, "-s", "ZOOKEEPER", "--json",
        ])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert "CORE_MASTER" not in [g["name"] for g in data["groups"]]

    def test_plan_unknown_version(self, workspace: Path):
        runner = CliRunner()
        result = runner.invoke(cli, [
            "plan", str(workspace / "packs" / "upgrade-2.3.yml"),
            *_files(workspace), "--to", "9.9",
        ])
        assert result.exit_code == 1
        assert "Repository version 9.9 was not found" in result.output

    def test_plan_requires_target_version(self, workspace: Path):
        runner = CliRunner()
        result = runner.invoke(cli, ["plan", str(workspace / "packs"), *_files(workspace)])
        assert result.exit_code == 2
        assert "--to" in result.output

    def test_plan_audit_log(self, workspace: Path):
        audit = workspace / "audit.ndjson"
        runner = CliRunner()
        result = runner.invoke(cli, [
            "--audit-log", str(audit), "plan", str(workspace / "packs" / "upgrade-2.3.yml"),
            *_files(workspace), "--to", TO, "--from", FROM,
        ])
        assert result.exit_code == 0, result.output

        entries = AuditWriter(audit).read_all()
        assert len(entries) == 1
        assert entries[0].operation_type == "plan"
        assert entries[0].status == "ok"


class TestReconcileCommand:
    def test_reconcile_saves(self, workspace: Path):
        runner = CliRunner()
        result = runner.invoke(cli, [
            "reconcile", *_files(workspace), "--to", TO, "--from", FROM, "--actor", "ops",
        ])
        assert result.exit_code == 0, result.output
        assert "ZOOKEEPER" in result.output
        assert "Cluster saved to" in result.output

        cluster = load_cluster(workspace / "cluster.yml")
        assert cluster.desired_config("zoo.cfg").tag == "version2"
        assert cluster.desired_config("zoo.cfg").created_by == "ops"

    def test_actor_from_environment(self, workspace: Path):
        runner = CliRunner()
        result = runner.invoke(
            cli,
            ["reconcile", *_files(workspace), "--to", TO, "--from", FROM],
            env={"ROLLPLAN_ACTOR": "upgrader"},
        )
        assert result.exit_code == 0, result.output
        cluster = load_cluster(workspace / "cluster.yml")
        assert cluster.desired_config("hdfs-site").created_by == "upgrader"

    def test_dry_run(self, workspace: Path):
        before = (workspace / "cluster.yml").read_text()
        runner = CliRunner()
        result = runner.invoke(cli, [
            "reconcile", *_files(workspace), "--to", TO, "--from", FROM, "--dry-run",
        ])
        assert result.exit_code == 0, result.output
        assert "[dry-run]" in result.output
        assert "Cluster saved" not in result.output
        assert (workspace / "cluster.yml").read_text() == before

    def test_downgrade(self, workspace: Path):
        runner = CliRunner()
        result = runner.invoke(cli, [
            "reconcile", *_files(workspace), "--to", FROM, "--from", TO,
            "--direction", "downgrade", "--dry-run",
        ])
        assert result.exit_code == 0, result.output
        assert "reverted" in result.output

    def test_reconcile_json(self, workspace: Path):
        runner = CliRunner()
        result = runner.invoke(cli, [
            "-q", "reconcile", *_files(workspace), "--to", TO, "--from", FROM,
            "--dry-run", "--json",
        ])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["dry_run"] is True
        assert data["configurations"]["merged"] == {
            "HDFS": ["hdfs-site"],
            "ZOOKEEPER": ["zoo.cfg"],
        }

    def test_reconcile_unknown_service(self, workspace: Path):
        runner = CliRunner()
        result = runner.invoke(cli, [
            "reconcile", *_files(workspace), "--to", TO, "-s", "YARN",
        ])
        assert result.exit_code == 1
        assert "YARN" in result.output

    def test_reconcile_audit_log(self, workspace: Path):
        audit = workspace / "audit.ndjson"
        runner = CliRunner()
        result = runner.invoke(cli, [
            "--audit-log", str(audit), "reconcile", *_files(workspace),
            "--to", TO, "--from", FROM, "--dry-run",
        ])
        assert result.exit_code == 0, result.output

        entry = AuditWriter(audit).read_all()[0]
        assert entry.operation_type == "reconcile"
        assert entry.context["dry_run"] is True
        assert entry.context["saved"] is False


class TestPackCheckCommand:
    def test_valid(self, workspace: Path):
        runner = CliRunner()
        result = runner.invoke(cli, ["pack", "check", str(workspace / "packs" / "upgrade-2.3.yml")])
        assert result.exit_code == 0, result.output
        assert "Upgrade pack is valid" in result.output
        assert "upgrade-2.3" in result.output
        assert "HDP-2.3" in result.output

    def test_invalid(self, tmp_path: Path):
        path = tmp_path / "pack.yml"
        path.write_text("name: broken\n")
        runner = CliRunner()
        result = runner.invoke(cli, ["pack", "check", str(path)])
        assert result.exit_code == 1
        assert "Upgrade pack errors" in result.output

    def test_warnings(self, tmp_path: Path, pack_data: dict):
        pack_data["groups"][1]["services"] = []
        path = tmp_path / "pack.yml"
        path.write_text(yaml.safe_dump(pack_data))
        runner = CliRunner()
        result = runner.invoke(cli, ["pack", "check", str(path)])
        assert result.exit_code == 0, result.output
        assert "Warnings" in result.output
        assert "lists no services" in result.output

    def test_json(self, workspace: Path):
        runner = CliRunner()
        result = runner.invoke(cli, [
            "-q", "pack", "check", str(workspace / "packs" / "nonrolling-upgrade-2.3.yml"), "--json",
        ])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["valid"] is True
        assert data["pack_name"] == "nonrolling-upgrade-2.3"
        assert data["type"] == "NON_ROLLING"
        assert data["group_count"] == 3
