"""Tests for the browser scenarios against a fake automation session."""

from typing import Any, List, Optional
from unittest.mock import AsyncMock

import pytest

from browser_bench_core.benchmarking.engine import isolate
from browser_bench_core.config import load_run_config
from browser_bench_core.domain.models import WorkItem
from browser_bench_core.eval_logger import EvalLogger
from browser_bench_core.exceptions import ConfigurationError
from browser_bench_core.scenarios import (
    ActResult,
    LaunchOptions,
    Observation,
    WEB_SCENARIOS,
    build_web_registry,
    load_launcher,
)
from browser_bench_core.scenarios import web
from browser_bench_core.scenarios.web import (
    Contributor,
    Contributors,
    PeelerPrice,
    RepoStars,
    _parse_star_count,
)


class FakeSession:
    """Minimal BrowserSession with scripted responses."""

    def __init__(
        self,
        *,
        url: str = "about:blank",
        observations: Optional[List[Observation]] = None,
        act_result: Optional[ActResult] = None,
        extracted: Any = None,
        inner_html: str = "",
        visible: bool = False,
    ) -> None:
        self.session_id = "sess-42"
        self.debug_url = "https://debug/sess-42"
        self.session_url = "https://sessions/sess-42"
        self._url = url
        self.goto = AsyncMock()
        self.act = AsyncMock(
            return_value=act_result or ActResult(success=True, message="done", action="")
        )
        self.observe = AsyncMock(return_value=observations or [])
        self.extract = AsyncMock(return_value=extracted)
        self.inner_html = AsyncMock(return_value=inner_html)
        self.is_visible = AsyncMock(return_value=visible)
        self.close = AsyncMock()

    @property
    def url(self) -> str:
        return self._url


def _launcher(session: FakeSession) -> AsyncMock:
    return AsyncMock(return_value=session)


LOCAL = LaunchOptions()


@pytest.mark.asyncio
async def test_vanta_h_passes_when_nothing_observed():
    session = FakeSession()
    log = EvalLogger()
    out = await web.vanta_h("gpt-4o", log, launcher=_launcher(session), options=LOCAL)
    assert out["success"] is True
    assert out["debug_url"] == "https://debug/sess-42"
    assert out["session_url"] == "https://sessions/sess-42"
    assert log.session_id == "sess-42"
    session.goto.assert_awaited_once_with("https://www.vanta.com/")
    session.close.assert_awaited_once()


@pytest.mark.asyncio
async def test_vanta_h_fails_when_button_found():
    session = FakeSession(observations=[Observation(selector="#buy", description="Buy now")])
    out = await web.vanta_h("gpt-4o", EvalLogger(), launcher=_launcher(session), options=LOCAL)
    assert out["success"] is False
    assert out["observations"][0]["selector"] == "#buy"


@pytest.mark.asyncio
async def test_wikipedia_compares_final_url():
    session = FakeSession(url="https://en.wikipedia.org/wiki/Hit_and_run_(baseball)")
    out = await web.wikipedia("gpt-4o", EvalLogger(), launcher=_launcher(session), options=LOCAL)
    assert out["success"] is True

    session = FakeSession(url="https://en.wikipedia.org/wiki/Baseball")
    out = await web.wikipedia("gpt-4o", EvalLogger(), launcher=_launcher(session), options=LOCAL)
    assert out["success"] is False
    assert out["actual"] == "https://en.wikipedia.org/wiki/Baseball"


@pytest.mark.asyncio
async def test_simple_google_search_prefix():
    session = FakeSession(url="https://www.google.com/search?q=OpenAI&sca_esv=1")
    out = await web.simple_google_search(
        "gpt-4o", EvalLogger(), launcher=_launcher(session), options=LOCAL
    )
    assert out["success"] is True


@pytest.mark.asyncio
async def test_peeler_complex_checks_price_with_pinned_model():
    session = FakeSession(extracted=PeelerPrice(price=11.99))
    out = await web.peeler_complex(
        "claude-3-5-sonnet-20241022", EvalLogger(), launcher=_launcher(session), options=LOCAL
    )
    assert out["success"] is True
    assert out["price"] == 11.99
    _, kwargs = session.extract.call_args
    assert kwargs["model_name"] == web.STRUCTURED_OUTPUT_MODEL


@pytest.mark.asyncio
async def test_peeler_simple_refuses_remote_browser():
    launcher = AsyncMock()
    with pytest.raises(RuntimeError):
        await web.peeler_simple(
            "gpt-4o", EvalLogger(), launcher=launcher, options=LaunchOptions(env="BROWSERBASE")
        )
    launcher.assert_not_awaited()


@pytest.mark.asyncio
async def test_peeler_simple_local_page():
    session = FakeSession(visible=True)
    out = await web.peeler_simple("gpt-4o", EvalLogger(), launcher=_launcher(session), options=LOCAL)
    assert out["success"] is True
    (url,), _ = session.goto.call_args
    assert url.startswith("file://") and url.endswith("evals/assets/peeler.html")


@pytest.mark.parametrize(
    "text,expected",
    [("228k", 228000.0), ("1,234", 1234.0), (" 12.5K ", 12500.0), ("42", 42.0)],
)
def test_parse_star_count(text, expected):
    assert _parse_star_count(text) == expected


@pytest.mark.asyncio
@pytest.mark.parametrize("extracted,success", [(228500, True), (226000, False)])
async def test_extract_github_stars_tolerance(extracted, success):
    session = FakeSession(extracted=RepoStars(stars=extracted), inner_html="228k")
    out = await web.extract_github_stars(
        "gpt-4o", EvalLogger(), launcher=_launcher(session), options=LOCAL
    )
    assert out["success"] is success
    session.inner_html.assert_awaited_once_with("#repo-stars-counter-star")


@pytest.mark.asyncio
async def test_extract_collaborators_needs_twenty():
    people = [Contributor(github_username=f"u{i}", information="1 commit") for i in range(20)]
    session = FakeSession(extracted=Contributors(contributors=people))
    log = EvalLogger()
    out = await web.extract_collaborators_from_github_repository(
        "gpt-4o", log, launcher=_launcher(session), options=LOCAL
    )
    assert out["success"] is True
    assert len(out["contributors"]) == 20
    assert any("20 collaborators" in e.message for e in out["logs"])


@pytest.mark.asyncio
async def test_nonsense_action_expects_not_found():
    act = ActResult(
        success=False,
        message="Action not found on the current page after checking all chunks.",
        action="click on the first banana",
    )
    session = FakeSession(act_result=act)
    out = await web.nonsense_action("gpt-4o", EvalLogger(), launcher=_launcher(session), options=LOCAL)
    assert out["success"] is True

    session = FakeSession(act_result=ActResult(success=True, message="clicked", action="x"))
    out = await web.nonsense_action("gpt-4o", EvalLogger(), launcher=_launcher(session), options=LOCAL)
    assert out["success"] is False


@pytest.mark.asyncio
async def test_session_closed_when_body_faults_and_isolated(tmp_path):
    session = FakeSession()
    session.act.side_effect = RuntimeError("engine crashed")
    config = load_run_config(environ={"EVAL_CONFIG_YAML": str(tmp_path / "none.yaml")})
    registry = build_web_registry(_launcher(session), config)

    result = await isolate(registry.get("wikipedia"), WorkItem.for_pair("wikipedia", "gpt-4o"))

    session.close.assert_awaited_once()
    assert result.output.success is False
    assert result.output.error["message"] == "engine crashed"
    # urls captured by logger.init survive the fault
    assert result.output.debug_url == "https://debug/sess-42"


@pytest.mark.asyncio
async def test_registry_binds_launcher_and_options(tmp_path):
    config = load_run_config(
        environ={"EVAL_CONFIG_YAML": str(tmp_path / "none.yaml"), "HEADLESS": "1"}
    )
    session = FakeSession()
    launcher = _launcher(session)
    registry = build_web_registry(launcher, config)
    assert registry.names() == list(WEB_SCENARIOS)

    log = EvalLogger()
    await registry.get("vanta_h")("gpt-4o", log)
    model, passed_logger, options = launcher.call_args.args
    assert model == "gpt-4o"
    assert passed_logger is log
    assert options.headless is True
    assert options.env == "LOCAL"


def test_load_launcher_paths():
    assert load_launcher("builtins:len") is len
    with pytest.raises(ConfigurationError):
        load_launcher("no_colon_here")
    with pytest.raises(ConfigurationError):
        load_launcher("browser_bench_core.scenarios.web:does_not_exist")
    with pytest.raises(ConfigurationError):
        load_launcher("browser_bench_core.scenarios.web:STRUCTURED_OUTPUT_MODEL")


@pytest.mark.asyncio
async def test_close_failure_becomes_failed_outcome(tmp_path):
    session = FakeSession(url="https://en.wikipedia.org/wiki/Hit_and_run_(baseball)")
    session.close.side_effect = ConnectionError("browser already gone")
    config = load_run_config(environ={"EVAL_CONFIG_YAML": str(tmp_path / "none.yaml")})
    registry = build_web_registry(_launcher(session), config)

    result = await isolate(registry.get("wikipedia"), WorkItem.for_pair("wikipedia", "gpt-4o"))

    assert result.output.success is False
    assert result.output.error["type"] == "ConnectionError"
