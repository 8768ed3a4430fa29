"""End-to-end tests for the mirror cycle and the command line."""

import json
import logging
import os
from datetime import datetime

import pytest
import yaml

from bucketmirror import main as cli
from bucketmirror.api_clients import StoreClientFactory
from bucketmirror.config import ConfigLoader, MIRROR_CONFIG_EXAMPLE, get_settings
from bucketmirror.core import BucketMirror, ChangeKind
from bucketmirror.exceptions import RepositoryUnavailable

from conftest import FakeStoreClient, write_file


@pytest.mark.integration
class TestBucketMirror:

    def test_cycle_detects_and_applies(self, store, mirror_config, work_dir):
        store.put("a.txt", b"alpha", "2020-01-01T00:00:00Z")
        store.put("nested/b.txt", b"beta", "2020-01-02T00:00:00Z")
        write_file(work_dir, "old/c.txt")

        result = BucketMirror(mirror_config, client=store).run_cycle()

        assert [(m.kind, m.remote_key) for m in result.modifications] == [
            (ChangeKind.CREATED, "a.txt"),
            (ChangeKind.CREATED, "nested/b.txt"),
            (ChangeKind.DELETED, "old/c.txt"),
        ]
        assert result.applied
        assert result.apply_result.downloaded == 2
        assert result.apply_result.deleted == 1
        assert sorted(os.listdir(work_dir)) == ["a.txt", "nested"]

    def test_second_cycle_is_a_no_op(self, store, mirror_config):
        store.put("a.txt", b"alpha", "2020-01-01T00:00:00.250Z")
        mirror = BucketMirror(mirror_config, client=store)
        mirror.run_cycle()

        result = mirror.run_cycle()

        assert result.modifications == []
        assert result.apply_result.files_changed == 0

    def test_detection_only_leaves_filesystem_untouched(self, store, mirror_config, work_dir):
        store.put("a.txt", b"alpha")
        write_file(work_dir, "local.txt")
        config = mirror_config.model_copy(update={"auto_get_source": False})

        result = BucketMirror(config, client=store).run_cycle()

        assert len(result.modifications) == 2
        assert not result.applied
        assert os.listdir(work_dir) == ["local.txt"]
        assert store.get_calls == []

    def test_get_source_reuses_detected_modifications(self, store, mirror_config, work_dir):
        store.put("a.txt", b"alpha")
        mirror = BucketMirror(mirror_config, client=store)

        modifications = mirror.get_modifications()
        store.put("late.txt", b"arrived after detection")
        mirror.get_source()

        assert [m.remote_key for m in modifications] == ["a.txt"]
        assert os.listdir(work_dir) == ["a.txt"]
        assert len(store.list_calls) == 1

    def test_get_source_detects_when_nothing_cached(self, store, mirror_config, work_dir):
        store.put("a.txt", b"alpha")

        result = BucketMirror(mirror_config, client=store).get_source()

        assert result.downloaded == 1

    def test_missing_working_directory_is_created_on_apply(self, store, mirror_config, tmp_path):
        store.put("x/y.txt", b"1")
        target = tmp_path / "fresh" / "mirror"
        config = mirror_config.model_copy(update={"working_directory": str(target)})

        result = BucketMirror(config, client=store).run_cycle()

        assert [m.kind for m in result.modifications] == [ChangeKind.CREATED]
        assert (target / "x" / "y.txt").read_bytes() == b"1"

    def test_missing_root_tolerated(self, store, mirror_config):
        store.missing_bucket = True
        config = mirror_config.model_copy(update={"ignore_missing_root": True})

        result = BucketMirror(config, client=store).run_cycle()

        assert result.modifications == []

    def test_missing_root_is_fatal_by_default(self, store, mirror_config):
        store.missing_bucket = True

        with pytest.raises(RepositoryUnavailable):
            BucketMirror(mirror_config, client=store).run_cycle()

    def test_prefixed_mirror(self, mirror_config, work_dir):
        paged = FakeStoreClient(page_size=1)
        paged.put("site/index.html", b"<html>", "2022-02-02T02:02:02Z")
        paged.put("site/css/main.css", b"body{}", "2022-02-02T02:02:02Z")
        paged.put("other/ignored.txt", b"no")
        config = mirror_config.model_copy(update={"prefix": "site"})

        BucketMirror(config, client=paged).run_cycle()

        assert os.path.isfile(os.path.join(work_dir, "index.html"))
        assert os.path.isfile(os.path.join(work_dir, "css", "main.css"))
        assert not os.path.exists(os.path.join(work_dir, "other"))
        assert BucketMirror(config, client=paged).get_modifications() == []

    def test_prefix_without_separator_keeps_churning_sibling_keys(self, store, mirror_config, work_dir):
        # "database.txt" shares the "data" prefix and maps to base.txt, but the
        # local lister reports that file back as "data/base.txt"
        store.put("data/x.txt", b"1")
        store.put("database.txt", b"2")
        mirror = BucketMirror(mirror_config.model_copy(update={"prefix": "data"}), client=store)
        mirror.run_cycle()

        result = mirror.run_cycle()

        assert [(m.kind, m.remote_key) for m in result.modifications] == [
            (ChangeKind.CREATED, "database.txt"),
            (ChangeKind.DELETED, "data/base.txt"),
        ]
        assert sorted(os.listdir(work_dir)) == ["x.txt"]

    def test_remote_update_is_pulled(self, store, mirror_config, work_dir):
        store.put("f.txt", b"v1", "2020-01-01T00:00:00Z")
        mirror = BucketMirror(mirror_config, client=store)
        mirror.run_cycle()

        store.put("f.txt", b"v2", "2020-01-01T00:00:05Z")
        result = mirror.run_cycle()

        assert [m.kind for m in result.modifications] == [ChangeKind.UPDATED]
        with open(os.path.join(work_dir, "f.txt"), "rb") as f:
            assert f.read() == b"v2"


@pytest.mark.integration
class TestCommandLine:

    @pytest.fixture(autouse=True)
    def restore_root_logger(self):
        """main() attaches handlers bound to the captured streams; drop them afterwards."""
        root = logging.getLogger()
        handlers, level = list(root.handlers), root.level
        yield
        root.handlers[:] = handlers
        root.setLevel(level)

    @pytest.fixture
    def config_file(self, tmp_path, work_dir):
        path = tmp_path / "bucketmirror.yaml"
        path.write_text(yaml.safe_dump({
            "accessKeyId": "AKIATEST",
            "secretAccessKey": "secret",
            "bucket": "test-bucket",
            "workingDirectory": work_dir,
        }))
        return str(path)

    @pytest.fixture
    def fake_factory(self, monkeypatch, store):
        monkeypatch.setattr(StoreClientFactory, "create_client", classmethod(lambda cls, config, **kwargs: store))
        return store

    def test_detect_prints_json(self, config_file, fake_factory, work_dir, capsys):
        fake_factory.put("a.txt", b"alpha", "2020-01-01T00:00:00Z")

        exit_code = cli.main(["detect", "--config", config_file, "--json", "--log-level", "ERROR"])

        output = json.loads(capsys.readouterr().out)
        assert exit_code == 0
        assert output == [{
            "kind": "Created",
            "remote_key": "a.txt",
            "folder_name": work_dir,
            "file_name": "a.txt",
            "timestamp": "2020-01-01T00:00:00+00:00",
        }]
        assert os.listdir(work_dir) == []

    def test_sync_applies(self, config_file, fake_factory, work_dir, capsys):
        fake_factory.put("a.txt", b"alpha")

        exit_code = cli.main(["sync", "--config", config_file, "--log-level", "ERROR"])

        assert exit_code == 0
        assert "Created" in capsys.readouterr().out
        assert os.listdir(work_dir) == ["a.txt"]

    def test_working_directory_override(self, config_file, fake_factory, tmp_path):
        fake_factory.put("a.txt", b"alpha")
        other = tmp_path / "other"

        cli.main(["sync", "--config", config_file, "-w", str(other), "--log-level", "ERROR"])

        assert (other / "a.txt").exists()

    def test_nothing_to_report(self, config_file, fake_factory, capsys):
        exit_code = cli.main(["detect", "--config", config_file, "--log-level", "ERROR"])

        assert exit_code == 0
        assert capsys.readouterr().out.strip() == "No modifications"

    def test_failure_exit_code(self, config_file, fake_factory):
        fake_factory.missing_bucket = True

        assert cli.main(["detect", "--config", config_file, "--log-level", "ERROR"]) == 1

    def test_failure_is_reported_once(self, config_file, fake_factory, caplog):
        fake_factory.missing_bucket = True

        assert cli.main(["detect", "--config", config_file, "--log-level", "DEBUG"]) == 1

        errors = [record for record in caplog.records if record.levelno >= logging.ERROR]
        assert len(errors) == 1
        assert "Mirror cycle failed" in errors[0].getMessage()

    def test_startup_logs_version(self, config_file, fake_factory, caplog):
        cli.main(["detect", "--config", config_file, "--log-level", "INFO"])

        starts = [record.getMessage() for record in caplog.records if "Starting bucket mirror" in record.getMessage()]
        assert len(starts) == 1
        assert f"version={get_settings().version}" in starts[0]

    def test_version_flag(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["--version"])

        assert exc_info.value.code == 0
        assert capsys.readouterr().out.strip() == f"bucket-mirror {get_settings().version}"

    def test_help_shows_loadable_example_config(self, capsys, tmp_path):
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args(["--help"])

        assert "bucket: my.bucket" in capsys.readouterr().out

        path = tmp_path / "example.yaml"
        path.write_text(cli.render_example_config())
        assert ConfigLoader().load_from_file(path) == MIRROR_CONFIG_EXAMPLE

    def test_missing_config_file(self, tmp_path):
        assert cli.main(["detect", "--config", str(tmp_path / "nope.yaml"), "--log-level", "ERROR"]) == 1


def test_render_modifications_table(store, mirror_config):
    store.put("a.txt", b"alpha", "2020-01-01T00:00:00Z")
    modifications = BucketMirror(mirror_config, client=store).get_modifications()

    text = cli.render_modifications(modifications)

    assert text.startswith("Created  a.txt -> ")
    assert text.endswith(os.path.join(mirror_config.working_directory, "a.txt"))


def test_modification_timestamps_are_utc(store, mirror_config):
    store.put("a.txt", b"alpha", "2020-06-01T12:00:00+02:00")

    modification = BucketMirror(mirror_config, client=store).get_modifications()[0]

    assert modification.timestamp == datetime.fromisoformat("2020-06-01T10:00:00+00:00")
