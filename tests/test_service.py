"""Tests for lsp/service.py (LanguageService).

The editor host is a MagicMock; the compiler is either a small Python
script standing in for the real one or a patched run_compiler.
"""

import shlex
import sys
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from bgforge_mls.core.config import FalloutSettings, MlsConfig
from bgforge_mls.core.exceptions import CompileError
from bgforge_mls.diagnostics.compile import CompileOutput
from bgforge_mls.lsp.protocol import CompletionItemKind, DiagnosticSeverity
from bgforge_mls.lsp.service import LanguageService, path_to_uri, uri_to_path

FAKE_COMPILER = """\
import sys
print("Compiling " + sys.argv[-3])
print("[Error] <Semantic> <test.ssl>:2:5: Unknown identifier qq.")
print("[Warning] <Optimizer> <test.ssl>:1:: Unused procedure start")
sys.exit(1)
"""


@pytest.fixture
def workspace(tmp_path) -> Path:
    root = tmp_path / "mod"
    (root / "headers").mkdir(parents=True)
    (root / "headers" / "define.h").write_text(
        "/**\n * Player reputation.\n */\n#define GVAR_REP (401)\n#define hp(x) get_hp(x)\n"
    )
    (root / "scripts").mkdir()
    (root / "scripts" / "test.ssl").write_text("procedure start begin\nend\n")
    return root


@pytest.fixture
def host() -> MagicMock:
    return MagicMock()


@pytest.fixture
def service(workspace, host) -> LanguageService:
    svc = LanguageService(workspace, config=MlsConfig(), host=host)
    svc.initialize()
    return svc


class TestUris:
    """Tests for URI helpers."""

    def test_round_trip(self, tmp_path):
        """A path survives conversion to a URI and back."""
        path = tmp_path / "with space" / "a.ssl"
        assert uri_to_path(path_to_uri(path)) == path.resolve()

    def test_plain_path(self):
        """Non-URIs are treated as paths."""
        assert uri_to_path("scripts/a.ssl") == Path("scripts/a.ssl")

    def test_relative_path(self, service, workspace):
        """Document URIs are keyed relative to the workspace."""
        uri = path_to_uri(workspace / "scripts" / "test.ssl")
        assert service.relative_path(uri) == "scripts/test.ssl"


class TestInitialize:
    """Tests for startup loading."""

    def test_workspace_headers_are_dynamic(self, service):
        """Headers are available from any document."""
        hover = service.get_hover("fallout-ssl", "scripts/other.ssl", "GVAR_REP")
        assert hover is not None
        assert "(401)" in hover.contents
        assert "headers/define.h" in hover.contents
        assert "Player reputation." in hover.contents

    def test_external_headers_are_static(self, tmp_path, workspace, host):
        """Configured external headers shadow workspace headers."""
        external = tmp_path / "sfall"
        external.mkdir()
        (external / "sfall.h").write_text("#define GVAR_REP (999)\n")

        config = MlsConfig(fallout=FalloutSettings(headers_directory=str(external)))
        svc = LanguageService(workspace, config=config, host=host)
        svc.initialize()
        assert "(999)" in svc.get_hover("fallout-ssl", "scripts/test.ssl", "GVAR_REP").contents

    def test_dialect_uses_base_data(self, service):
        """A dialect language id reads its base language buckets."""
        assert service.get_hover("fallout-ssl-hover", "x.ssl", "GVAR_REP") is not None

    def test_unknown_word(self, service):
        """Unknown words have no hover."""
        assert service.get_hover("fallout-ssl", "scripts/test.ssl", "NOPE") is None


class TestReloadFile:
    """Tests for incremental reloads."""

    def test_script_goes_to_self(self, service):
        """Script declarations are only visible from the script itself."""
        service.reload_file("scripts/a.ssl", "fallout-ssl", "procedure talk begin end\n")
        assert service.get_hover("fallout-ssl", "scripts/a.ssl", "talk") is not None
        assert service.get_hover("fallout-ssl", "scripts/b.ssl", "talk") is None

    def test_self_shadows_header(self, service):
        """A local redefinition wins over the header."""
        service.reload_file("scripts/a.ssl", "fallout-ssl", "#define GVAR_REP (7)\n")
        assert "(7)" in service.get_hover("fallout-ssl", "scripts/a.ssl", "GVAR_REP").contents
        assert "(401)" in service.get_hover("fallout-ssl", "scripts/b.ssl", "GVAR_REP").contents

    def test_header_edit_updates_dynamic(self, service):
        """Editing a header replaces only its own entries."""
        service.reload_file("headers/extra.h", "fallout-ssl", "#define EXTRA 1\n")
        service.reload_file("headers/define.h", "fallout-ssl", "#define GVAR_REP (402)\n")

        assert "(402)" in service.get_hover("fallout-ssl", "x.ssl", "GVAR_REP").contents
        assert service.get_hover("fallout-ssl", "x.ssl", "hp") is None
        assert service.get_hover("fallout-ssl", "x.ssl", "EXTRA") is not None

    def test_unsupported_language_is_ignored(self, service):
        """Languages without extraction leave the index alone."""
        before = service.index.stats()
        service.reload_file("dialog/a.d", "weidu-d", "BEGIN foo")
        assert service.index.stats() == before

    def test_weidu_header(self, service):
        """WeiDU libraries feed the weidu-tp2 dynamic bucket."""
        service.reload_file("lib/util.tph", "weidu-tp2", "DEFINE_ACTION_FUNCTION util_log BEGIN END\n")
        assert service.get_hover("weidu-tp2", "setup.tp2", "util_log") is not None
        assert service.get_hover("fallout-ssl", "setup.tp2", "util_log") is None

    def test_close_forgets_self(self, service, workspace):
        """Closing a document drops its self bucket."""
        uri = path_to_uri(workspace / "scripts" / "a.ssl")
        service.on_open(uri, "fallout-ssl", "procedure talk begin end\n")
        service.on_close(uri)
        assert service.get_hover("fallout-ssl", "scripts/a.ssl", "talk") is None


class TestQueries:
    """Tests for completion, cursor hover and signature help."""

    def test_completions(self, service):
        """Completions list self symbols before header symbols."""
        service.reload_file("scripts/a.ssl", "fallout-ssl", "procedure talk begin end\n")
        items = service.get_completions("fallout-ssl", "scripts/a.ssl")
        assert [i.label for i in items] == ["talk", "GVAR_REP", "hp"]
        assert items[0].kind == CompletionItemKind.Function
        assert items[1].kind == CompletionItemKind.Constant

    def test_completions_for_unknown_language(self, service):
        """Unknown languages complete nothing."""
        assert service.get_completions("plaintext", "a.txt") == []

    def test_definition_in_header(self, service, workspace):
        """Header symbols resolve to their workspace header and line."""
        location = service.get_definition("fallout-ssl", "scripts/test.ssl", "GVAR_REP")
        assert location.uri == path_to_uri(workspace / "headers" / "define.h")
        assert location.line == 3
        assert location.to_dict()["range"]["start"] == {"line": 3, "character": 0}

    def test_definition_in_own_file(self, service, workspace):
        """Symbols of the document itself resolve to that document."""
        service.reload_file("scripts/test.ssl", "fallout-ssl", "\nprocedure talk begin end\n")
        location = service.get_definition("fallout-ssl", "scripts/test.ssl", "talk")
        assert location.uri == path_to_uri(workspace / "scripts" / "test.ssl")
        assert location.line == 1

    def test_definition_in_external_header(self, tmp_path, workspace, host):
        """Static symbols resolve inside the external header directory."""
        external = tmp_path / "sfall"
        external.mkdir()
        (external / "sfall.h").write_text("#define GVAR_REP (999)\n")
        config = MlsConfig(fallout=FalloutSettings(headers_directory=str(external)))
        svc = LanguageService(workspace, config=config, host=host)
        svc.initialize()

        location = svc.get_definition("fallout-ssl", "scripts/test.ssl", "GVAR_REP")
        assert location.uri == path_to_uri(external / "sfall.h")
        assert location.line == 0

    def test_definition_unknown(self, service):
        """Unknown words have no definition."""
        assert service.get_definition("fallout-ssl", "scripts/test.ssl", "NOPE") is None

    def test_hover_at_cursor(self, service):
        """Hover resolves the token under the cursor."""
        text = "procedure start begin\n  display_msg(GVAR_REP);\nend\n"
        hover = service.hover_at("fallout-ssl", "scripts/test.ssl", text, 1, 16)
        assert hover is not None
        assert "(401)" in hover.contents

    def test_signature_help(self, service):
        """Documented procedures provide signature help."""
        source = (
            "/**\n"
            " * Give an item.\n"
            " * @param {ObjectPtr} who\n"
            " * @param {int} pid\n"
            " */\n"
            "procedure give(variable who, variable pid) begin\nend\n"
            "procedure start begin\n  call give(dude_obj, \nend\n"
        )
        service.reload_file("scripts/a.ssl", "fallout-ssl", source)
        help_ = service.signature_help("fallout-ssl", "scripts/a.ssl", source, 8, len("  call give(dude_obj, "))
        assert help_ is not None
        assert help_.active_parameter == 1
        assert help_.signatures[0].label == "void give(ObjectPtr who, int pid)"

    def test_signature_help_undocumented(self, service):
        """Undocumented callees give no signature help."""
        text = "hp(x"
        assert service.signature_help("fallout-ssl", "a.ssl", text, 0, 4) is None


class TestParseDiagnostics:
    """Tests for parse_diagnostics."""

    def test_publishes_to_host(self, service, host):
        """Parsed diagnostics are published for the document."""
        diagnostics = service.parse_diagnostics(
            "file:///mod/test.ssl",
            "[Error] <Semantic> <test.ssl>:26:25: Unknown identifier qq.\n",
        )
        host.publish_diagnostics.assert_called_once_with("file:///mod/test.ssl", diagnostics)
        assert diagnostics[0].range.start.line == 25

    def test_weidu_output(self, service, host):
        """WeiDU documents use the WeiDU parser."""
        diagnostics = service.parse_diagnostics(
            "file:///mod/setup.tp2",
            "[setup.tp2] PARSE ERROR at line 3 column 1-5\n",
            lang_id="weidu-tp2",
        )
        assert len(diagnostics) == 1
        assert diagnostics[0].range.start.line == 2


class TestCompile:
    """Tests for background compiles."""

    @pytest.fixture
    def fake_compiler(self, tmp_path) -> str:
        script = tmp_path / "fake_compile.py"
        script.write_text(FAKE_COMPILER)
        return f"{shlex.quote(sys.executable)} {shlex.quote(str(script))}"

    @pytest.mark.asyncio
    async def test_compile_publishes_diagnostics(self, workspace, host, fake_compiler):
        """Compiler stdout is parsed even when the exit status is non-zero."""
        config = MlsConfig(fallout=FalloutSettings(compile_path=fake_compiler))
        svc = LanguageService(workspace, config=config, host=host)
        source = workspace / "scripts" / "test.ssl"
        uri = path_to_uri(source)

        diagnostics = await svc.compile(uri, "fallout-ssl", source.read_text(), interactive=True)

        assert diagnostics is not None
        assert [d.severity for d in diagnostics] == [DiagnosticSeverity.Error, DiagnosticSeverity.Warning]
        assert diagnostics[0].range.start.line == 1
        # warning on line 1 spans to the end of that line
        assert diagnostics[1].range.end.character == len("procedure start begin")
        host.show_error.assert_called_once_with("Failed to compile test.ssl!")
        host.publish_diagnostics.assert_called_with(uri, diagnostics)

    @pytest.mark.asyncio
    async def test_successful_compile_notifies(self, workspace, host):
        """A clean interactive compile shows an information message."""
        svc = LanguageService(workspace, config=MlsConfig(), host=host)
        uri = path_to_uri(workspace / "scripts" / "test.ssl")
        output = CompileOutput(stdout="", stderr="", returncode=0)

        with patch("bgforge_mls.lsp.service.run_compiler", AsyncMock(return_value=output)):
            diagnostics = await svc.compile(uri, "fallout-ssl", interactive=True)

        assert diagnostics == []
        host.show_information.assert_called_once_with("Successfully compiled test.ssl.")

    @pytest.mark.asyncio
    async def test_spawn_failure(self, workspace, host):
        """A missing compiler is reported, nothing is published afterwards."""
        svc = LanguageService(workspace, config=MlsConfig(), host=host)
        uri = path_to_uri(workspace / "scripts" / "test.ssl")

        with patch(
            "bgforge_mls.lsp.service.run_compiler",
            AsyncMock(side_effect=CompileError("Compiler not available: compile")),
        ):
            assert await svc.compile(uri, "fallout-ssl", interactive=True) is None

        host.show_error.assert_called_once_with("Failed to compile test.ssl!")
        host.publish_diagnostics.assert_called_once_with(uri, [])

    @pytest.mark.asyncio
    async def test_timed_out_compile_publishes_partial_output(self, workspace, host):
        """Output written before a timeout still becomes diagnostics."""
        svc = LanguageService(workspace, config=MlsConfig(), host=host)
        uri = path_to_uri(workspace / "scripts" / "test.ssl")
        output = CompileOutput(
            stdout="[Error] <Semantic> <test.ssl>:1:3: Unknown identifier qq.\n",
            stderr="",
            returncode=-9,
            timed_out=True,
        )

        with patch("bgforge_mls.lsp.service.run_compiler", AsyncMock(return_value=output)):
            diagnostics = await svc.compile(uri, "fallout-ssl", interactive=True)

        assert [d.message for d in diagnostics] == ["Unknown identifier qq."]
        host.show_error.assert_called_once_with("Failed to compile test.ssl!")
        host.publish_diagnostics.assert_called_with(uri, diagnostics)

    @pytest.mark.asyncio
    async def test_stale_compile_is_discarded(self, workspace, host):
        """A compile superseded by a newer request publishes nothing."""
        svc = LanguageService(workspace, config=MlsConfig(), host=host)
        uri = path_to_uri(workspace / "scripts" / "test.ssl")
        stale_output = CompileOutput(stdout="[Error] <S> <test.ssl>:1:1: stale", stderr="", returncode=1)

        async def newer_request_arrives(command, timeout_seconds=None):
            svc._sequencer.next(uri)
            return stale_output

        with patch("bgforge_mls.lsp.service.run_compiler", newer_request_arrives):
            assert await svc.compile(uri, "fallout-ssl") is None

        host.publish_diagnostics.assert_called_once_with(uri, [])

    @pytest.mark.asyncio
    async def test_header_is_not_compiled(self, workspace, host):
        """Only .ssl files are compiled."""
        svc = LanguageService(workspace, config=MlsConfig(), host=host)
        uri = path_to_uri(workspace / "headers" / "define.h")
        assert await svc.compile(uri, "fallout-ssl", interactive=True) is None
        host.show_information.assert_called_once_with("Please focus a Fallout SSL file to compile!")
        host.publish_diagnostics.assert_not_called()

    @pytest.mark.asyncio
    async def test_on_save_reloads_and_compiles(self, workspace, host):
        """Saving reloads symbols and validates the file."""
        svc = LanguageService(workspace, config=MlsConfig(validate_on_save=True), host=host)
        uri = path_to_uri(workspace / "scripts" / "test.ssl")
        output = CompileOutput(stdout="", stderr="", returncode=0)

        with patch("bgforge_mls.lsp.service.run_compiler", AsyncMock(return_value=output)) as run:
            await svc.on_save(uri, "fallout-ssl", "procedure saved begin end\n")

        run.assert_awaited_once()
        assert svc.get_hover("fallout-ssl", "scripts/test.ssl", "saved") is not None
        host.show_information.assert_not_called()

    @pytest.mark.asyncio
    async def test_on_save_without_validation(self, workspace, host):
        """Validation can be switched off."""
        config = MlsConfig(validate_on_save=False)
        svc = LanguageService(workspace, config=config, host=host)
        uri = path_to_uri(workspace / "scripts" / "test.ssl")

        with patch("bgforge_mls.lsp.service.run_compiler", AsyncMock()) as run:
            assert await svc.on_save(uri, "fallout-ssl", "procedure p begin end\n") is None
        run.assert_not_awaited()


class TestConfiguration:
    """Tests for workspace configuration handling."""

    @pytest.fixture(autouse=True)
    def no_env_config(self, monkeypatch):
        monkeypatch.delenv("BGFORGE_MLS_CONFIG", raising=False)

    def test_malformed_config_on_disk_uses_defaults(self, workspace, host):
        """A bad .bgforge.yml at startup falls back to the default config."""
        (workspace / ".bgforge.yml").write_text("fallout: oops\n")
        svc = LanguageService(workspace, host=host)
        assert svc.config == MlsConfig()

    @pytest.mark.asyncio
    async def test_saving_malformed_config_keeps_previous(self, workspace, host):
        """Saving a bad .bgforge.yml keeps the configuration in use."""
        config = MlsConfig(fallout=FalloutSettings(compile_path="/opt/compile"), validate_on_save=False)
        svc = LanguageService(workspace, config=config, host=host)
        config_file = workspace / ".bgforge.yml"

        for text in ("fallout: oops\n", "weidu:\n  - a\n", "validate_on_save: 'false'\n"):
            config_file.write_text(text)
            assert await svc.on_save(path_to_uri(config_file), "yaml", text) is None
            assert svc.config == config

    @pytest.mark.asyncio
    async def test_saving_config_reloads_it(self, workspace, host):
        """A valid .bgforge.yml edit replaces the configuration."""
        svc = LanguageService(workspace, config=MlsConfig(), host=host)
        config_file = workspace / ".bgforge.yml"
        text = "weidu:\n  game_path: /games/bg2\nvalidate_on_save: false\n"
        config_file.write_text(text)

        with patch("bgforge_mls.lsp.service.run_compiler", AsyncMock()) as run:
            assert await svc.on_save(path_to_uri(config_file), "yaml", text) is None
        run.assert_not_awaited()
        assert svc.config.weidu.game_path == "/games/bg2"
        assert svc.config.validate_on_save is False
