"""
Tests for status detection — bundle, command, package and manual checks.
"""

from maziq.adapters.mock import FakeRunner
from maziq.core.engine.detector import StatusDetector, classify, compare_versions
from maziq.core.models.software import Software
from maziq.core.models.status import Status, StatusState


def _software(detection: dict, **kw) -> Software:
    data = {"id": "tool", "installer": "brew", "detection": detection}
    data.update(kw)
    return Software.model_validate(data)


def _detector(runner: FakeRunner, on_path=(), paths=()) -> StatusDetector:
    return StatusDetector(
        runner=runner,
        which=lambda p: f"/usr/bin/{p}" if p in on_path else None,
        path_exists=lambda p: p in paths,
    )


class TestCompareVersions:
    def test_ordering(self):
        assert compare_versions("1.2.3", "1.2.4") == -1
        assert compare_versions("1.10.0", "1.9.9") == 1
        assert compare_versions("1.2", "1.2.0") == 0

    def test_prefixed(self):
        assert compare_versions("v18.17.0", "18.17.0") == 0
        assert compare_versions("go1.22.1", "1.23.0") == -1

    def test_unparsable(self):
        assert compare_versions("nightly", "1.0") is None

    def test_classify(self):
        assert classify(Status.present("1.0"), "2.0").state is StatusState.OUTDATED
        assert classify(Status.present("2.0"), "2.0").state is StatusState.UP_TO_DATE
        assert classify(Status.present("nightly"), "2.0").state is StatusState.UP_TO_DATE
        assert classify(Status.not_installed(), "2.0").state is StatusState.NOT_INSTALLED


class TestCommandCheck:
    CHECK = {"method": "command", "program": "go", "args": ["version"], "pattern": r"go(\d+(?:\.\d+)+)"}

    def test_not_on_path(self):
        status = _detector(FakeRunner()).detect(_software(self.CHECK))
        assert status == Status.not_installed("go not found on PATH")
        assert status.installed is False
        assert status.version is None

    def test_version_parsed(self):
        runner = FakeRunner()
        runner.set_capture(["go", "version"], output="go version go1.23.2 darwin/arm64\n")
        status = _detector(runner, on_path={"go"}).detect(_software(self.CHECK))
        assert status.installed
        assert status.version == "1.23.2"
        assert status.state is StatusState.UP_TO_DATE

    def test_outdated_against_latest(self):
        runner = FakeRunner()
        runner.set_capture(["go", "version"], output="go version go1.22.0 darwin/arm64")
        status = _detector(runner, on_path={"go"}).detect(_software(self.CHECK), "1.23.2")
        assert status.state is StatusState.OUTDATED

    def test_default_pattern_reads_first_line(self):
        runner = FakeRunner()
        runner.set_capture(["bun", "--version"], output="1.1.30\nextra 9.9.9\n")
        sw = _software({"method": "command", "program": "bun", "args": ["--version"]})
        assert _detector(runner, on_path={"bun"}).detect(sw).version == "1.1.30"

    def test_unparsable_output(self):
        runner = FakeRunner()
        runner.set_capture(["go", "version"], output="something odd")
        status = _detector(runner, on_path={"go"}).detect(_software(self.CHECK))
        assert status.state is StatusState.UNKNOWN
        assert status.installed is True

    def test_nonzero_exit(self):
        runner = FakeRunner()
        runner.set_capture(["go", "version"], returncode=1)
        status = _detector(runner, on_path={"go"}).detect(_software(self.CHECK))
        assert status.state is StatusState.NOT_INSTALLED

    def test_timeout(self):
        runner = FakeRunner()
        runner.set_capture_timeout(["go", "version"])
        status = _detector(runner, on_path={"go"}).detect(_software(self.CHECK))
        assert status.state is StatusState.UNKNOWN
        assert status.installed is True


class TestBundleCheck:
    CHECK = {"method": "bundle", "path": "/Applications/Zed.app"}
    MDLS = ["mdls", "-name", "kMDItemVersion", "/Applications/Zed.app"]

    def test_missing_bundle(self):
        status = _detector(FakeRunner()).detect(_software(self.CHECK))
        assert status.state is StatusState.NOT_INSTALLED

    def test_version_from_metadata(self):
        runner = FakeRunner()
        runner.set_capture(self.MDLS, output='kMDItemVersion = "0.160.4"\n')
        status = _detector(runner, paths={"/Applications/Zed.app"}).detect(_software(self.CHECK))
        assert status.version == "0.160.4"

    def test_null_metadata(self):
        runner = FakeRunner()
        runner.set_capture(self.MDLS, output="kMDItemVersion = (null)\n")
        status = _detector(runner, paths={"/Applications/Zed.app"}).detect(_software(self.CHECK))
        assert status.installed
        assert status.version is None

    def test_mdls_unavailable(self):
        status = _detector(FakeRunner(), paths={"/Applications/Zed.app"}).detect(_software(self.CHECK))
        assert status.state is StatusState.UNKNOWN
        assert status.installed is True

    def test_search_without_path(self):
        runner = FakeRunner()
        runner.set_capture(["mdfind", 'kMDItemFSName == "Zed.app"'], output="/Applications/Zed.app\n")
        runner.set_capture(self.MDLS, output='kMDItemVersion = "0.161.0"')
        sw = _software({"method": "bundle", "app_name": "Zed"})
        status = _detector(runner, paths={"/Applications/Zed.app"}).detect(sw)
        assert status.version == "0.161.0"

    def test_search_no_hits(self):
        runner = FakeRunner()
        runner.set_capture(["mdfind", 'kMDItemFSName == "Zed.app"'], output="")
        sw = _software({"method": "bundle", "app_name": "Zed"})
        assert _detector(runner).detect(sw).state is StatusState.NOT_INSTALLED


class TestPackageCheck:
    def test_brew_listing(self):
        runner = FakeRunner()
        runner.set_capture(["brew", "list", "--versions", "go"], output="go 1.23.2\n")
        sw = _software({"method": "package"}, id="go")
        status = _detector(runner, on_path={"brew"}).detect(sw)
        assert status.version == "1.23.2"

    def test_manager_missing(self):
        sw = _software({"method": "package"}, id="go")
        status = _detector(FakeRunner()).detect(sw)
        assert status.state is StatusState.NOT_INSTALLED
        assert "brew" in status.note

    def test_not_listed(self):
        runner = FakeRunner()
        runner.set_capture(["brew", "list", "--versions", "go"], returncode=1)
        sw = _software({"method": "package"}, id="go")
        assert _detector(runner, on_path={"brew"}).detect(sw).state is StatusState.NOT_INSTALLED

    def test_no_listing_for_kind(self):
        sw = _software({"method": "package"}, installer="script")
        assert _detector(FakeRunner()).detect(sw).state is StatusState.UNKNOWN


class TestManualCheck:
    def test_manual(self):
        sw = _software({"method": "manual", "note": "run `nvm --version` in a login shell"})
        status = _detector(FakeRunner()).detect(sw)
        assert status.state is StatusState.UNKNOWN
        assert "login shell" in status.note

    def test_detection_errors_become_unknown(self):
        class Exploding(FakeRunner):
            def run_capture(self, argv, timeout=30.0):
                raise RuntimeError("boom")

        sw = _software({"method": "command", "program": "go"})
        status = _detector(Exploding(), on_path={"go"}).detect(sw)
        assert status.state is StatusState.UNKNOWN
        assert "boom" in status.note


class TestWarningsAndTimeout:
    def test_warnings_reach_observer(self):
        class Exploding(FakeRunner):
            def run_capture(self, argv, timeout=30.0):
                raise RuntimeError("boom")

        warnings: list[str] = []
        sw = _software({"method": "command", "program": "go"})
        _detector(Exploding(), on_path={"go"}).detect(sw, on_warning=warnings.append)
        assert len(warnings) == 1
        assert "boom" in warnings[0]

    def test_timed_out_version_command_warns(self):
        runner = FakeRunner()
        runner.set_capture_timeout(["go", "--version"])
        warnings: list[str] = []
        sw = _software({"method": "command", "program": "go", "args": ["--version"]})
        status = _detector(runner, on_path={"go"}).detect(sw, timeout=2.5, on_warning=warnings.append)
        assert status.state is StatusState.UNKNOWN
        assert warnings == ["version command timed out after 2.5s"]

    def test_timeout_argument_overrides_default(self):
        runner = FakeRunner()
        runner.set_capture(["go", "--version"], output="go 1.0")
        sw = _software({"method": "command", "program": "go", "args": ["--version"]})
        detector = _detector(runner, on_path={"go"})
        detector.detect(sw)
        detector.detect(sw, timeout=2.5)
        assert runner.capture_timeouts == [10.0, 2.5]
