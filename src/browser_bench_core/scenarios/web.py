"""Browser scenarios run against live sites.

Each body has the signature `async (model_name, logger, *, launcher, options)`
and is bound into a ScenarioRegistry by `build_web_registry`, which fixes the
keyword arguments so the engine sees the uniform `(model_name, logger)` form.

Bodies own their browser session: `open_session` closes it on every exit
path. Faults are left to propagate; the engine converts them into failed
outcomes.
"""

from __future__ import annotations

import asyncio
import functools
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator, Dict, List, Optional

from pydantic import BaseModel, Field

from ..benchmarking.registry import ScenarioRegistry
from ..config import EvalRunConfig, ExecutionEnv
from ..eval_logger import EvalLogger
from .automation import BrowserSession, LaunchOptions, SessionLauncher

logger = logging.getLogger(__name__)

# Extraction override used where the scenario pins a specific model.
STRUCTURED_OUTPUT_MODEL = "gpt-4o-2024-08-06"


@asynccontextmanager
async def open_session(
    launcher: SessionLauncher,
    model_name: str,
    eval_logger: EvalLogger,
    options: LaunchOptions,
) -> AsyncIterator[BrowserSession]:
    session = await launcher(model_name, eval_logger, options)
    eval_logger.init(session)
    try:
        yield session
    finally:
        await session.close()


def _outcome(
    session: BrowserSession, eval_logger: EvalLogger, success: bool, **extra: Any
) -> Dict[str, Any]:
    return {
        "success": success,
        "debug_url": session.debug_url,
        "session_url": session.session_url,
        "logs": eval_logger.get_logs(),
        **extra,
    }


# ---------------------------------------------------------------------------
# Extraction shapes
# ---------------------------------------------------------------------------


class PeelerPrice(BaseModel):
    price: Optional[float] = Field(None, description="the price of the peeler")


class RepoStars(BaseModel):
    stars: float = Field(..., description="the number of stars for the project")


class Contributor(BaseModel):
    github_username: str = Field(..., description="the github username of the contributor")
    information: str = Field(..., description="number of commits contributed")


class Contributors(BaseModel):
    contributors: List[Contributor]


# ---------------------------------------------------------------------------
# Scenario bodies
# ---------------------------------------------------------------------------


async def vanta_h(
    model_name: str, eval_logger: EvalLogger, *, launcher: SessionLauncher, options: LaunchOptions
) -> Dict[str, Any]:
    """The page has no "buy now" button, so observe() must find nothing."""
    async with open_session(launcher, model_name, eval_logger, options) as session:
        await session.goto("https://www.vanta.com/")
        observations = await session.observe("find the buy now button")
        return _outcome(
            session,
            eval_logger,
            len(observations) == 0,
            observations=[o.model_dump() for o in observations],
        )


async def peeler_simple(
    model_name: str, eval_logger: EvalLogger, *, launcher: SessionLauncher, options: LaunchOptions
) -> Dict[str, Any]:
    if options.env == ExecutionEnv.BROWSERBASE.value:
        raise RuntimeError(
            "Browserbase not supported for this eval since we block all requests to file://"
        )
    page = Path.cwd() / "evals" / "assets" / "peeler.html"
    async with open_session(launcher, model_name, eval_logger, options) as session:
        await session.goto(page.as_uri())
        await session.act("add the peeler to cart")
        visible = await session.is_visible("Congratulations, you have 1 A in your cart")
        return _outcome(session, eval_logger, visible)


async def peeler_complex(
    model_name: str, eval_logger: EvalLogger, *, launcher: SessionLauncher, options: LaunchOptions
) -> Dict[str, Any]:
    async with open_session(launcher, model_name, eval_logger, options) as session:
        await session.goto("https://chefstoys.com/", timeout_ms=60000)
        await session.act("search for %search_query%", variables={"search_query": "peeler"})
        await session.act('click on the first "OXO" brand peeler')
        result = await session.extract(
            "get the price of the peeler", PeelerPrice, model_name=STRUCTURED_OUTPUT_MODEL
        )
        return _outcome(session, eval_logger, result.price == 11.99, price=result.price)


async def wikipedia(
    model_name: str, eval_logger: EvalLogger, *, launcher: SessionLauncher, options: LaunchOptions
) -> Dict[str, Any]:
    expected = "https://en.wikipedia.org/wiki/Hit_and_run_(baseball)"
    async with open_session(launcher, model_name, eval_logger, options) as session:
        await session.goto("https://en.wikipedia.org/wiki/Baseball")
        await session.act('click the "hit and run" link in this article')
        actual = session.url
        return _outcome(session, eval_logger, actual == expected, expected=expected, actual=actual)


async def simple_google_search(
    model_name: str, eval_logger: EvalLogger, *, launcher: SessionLauncher, options: LaunchOptions
) -> Dict[str, Any]:
    expected_prefix = "https://www.google.com/search?q=OpenAI"
    async with open_session(launcher, model_name, eval_logger, options) as session:
        await session.goto("https://www.google.com")
        await session.act('Search for "OpenAI"')
        current = session.url
        return _outcome(
            session, eval_logger, current.startswith(expected_prefix), current_url=current
        )


def _parse_star_count(text: str) -> float:
    # GitHub abbreviates large counts, e.g. "228k".
    text = text.strip().lower().replace(",", "")
    if text.endswith("k"):
        return float(text[:-1]) * 1000
    return float(text)


async def extract_github_stars(
    model_name: str, eval_logger: EvalLogger, *, launcher: SessionLauncher, options: LaunchOptions
) -> Dict[str, Any]:
    tolerance = 1000
    async with open_session(launcher, model_name, eval_logger, options) as session:
        await session.goto("https://github.com/facebook/react")
        result = await session.extract(
            "Extract the number of stars for the project", RepoStars, model_name=model_name
        )
        expected = _parse_star_count(await session.inner_html("#repo-stars-counter-star"))
        return _outcome(
            session, eval_logger, abs(result.stars - expected) <= tolerance, stars=result.stars
        )


async def extract_collaborators_from_github_repository(
    model_name: str, eval_logger: EvalLogger, *, launcher: SessionLauncher, options: LaunchOptions
) -> Dict[str, Any]:
    async with open_session(launcher, model_name, eval_logger, options) as session:
        await session.goto("https://github.com/facebook/react")
        await session.act("find the contributors section")
        result = await session.extract(
            "Extract top 20 contributors of this repository", Contributors, model_name=model_name
        )
        eval_logger.info(f"Extracted {len(result.contributors)} collaborators")
        return _outcome(
            session,
            eval_logger,
            len(result.contributors) == 20,
            contributors=[c.model_dump() for c in result.contributors],
        )


async def nonsense_action(
    model_name: str, eval_logger: EvalLogger, *, launcher: SessionLauncher, options: LaunchOptions
) -> Dict[str, Any]:
    """An impossible action must be reported as not found, not performed."""
    action = "click on the first banana"
    expected = {
        "success": False,
        "message": "Action not found on the current page after checking all chunks.",
        "action": action,
    }
    async with open_session(launcher, model_name, eval_logger, options) as session:
        await session.goto("https://www.homedepot.com/")
        result = await session.act(action)
        actual = result.model_dump(include={"success", "message", "action"})
        return _outcome(session, eval_logger, actual == expected, act_result=actual)


async def amazon_add_to_cart(
    model_name: str, eval_logger: EvalLogger, *, launcher: SessionLauncher, options: LaunchOptions
) -> Dict[str, Any]:
    expected_prefix = "https://www.amazon.com/ap/signin"
    async with open_session(launcher, model_name, eval_logger, options) as session:
        await session.goto(
            "https://www.amazon.com/Laptop-MacBook-Surface-Water-Resistant-Accessories/dp/B0D5M4H5CD"
        )
        await asyncio.sleep(5)
        await session.act("click the 'Add to Cart' button")
        await asyncio.sleep(2)
        await session.act("click the 'Proceed to checkout' button")
        await asyncio.sleep(2)
        current = session.url
        return _outcome(
            session, eval_logger, current.startswith(expected_prefix), current_url=current
        )


WEB_SCENARIOS = {
    "vanta_h": vanta_h,
    "peeler_simple": peeler_simple,
    "peeler_complex": peeler_complex,
    "wikipedia": wikipedia,
    "simple_google_search": simple_google_search,
    "extract_github_stars": extract_github_stars,
    "extract_collaborators_from_github_repository": extract_collaborators_from_github_repository,
    "nonsense_action": nonsense_action,
    "amazon_add_to_cart": amazon_add_to_cart,
}


def build_web_registry(launcher: SessionLauncher, config: EvalRunConfig) -> ScenarioRegistry:
    """Bind every web scenario to a launcher and the run's launch options."""
    options = LaunchOptions(
        env=config.env.value,
        headless=config.headless,
        enable_caching=config.enable_caching,
    )
    registry = ScenarioRegistry()
    for name, body in WEB_SCENARIOS.items():
        registry.register(name, functools.partial(body, launcher=launcher, options=options))
    logger.debug(f"Registered {len(registry)} web scenario(s)")
    return registry


__all__ = ["WEB_SCENARIOS", "build_web_registry", "open_session"]
