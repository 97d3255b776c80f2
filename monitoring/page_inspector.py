"""
Page Inspector

Loads a target page in Chrome and reports the change signals we care about:
whether each configured element is present, and whether the page redirected
to a URL matching the configured pattern. Each inspection saves the latest
full-page screenshot and HTML snapshot to the artifact store.
"""

import base64
import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Callable, Mapping, Optional, Tuple

from bs4 import BeautifulSoup
from selenium import webdriver
from selenium.common.exceptions import TimeoutException, WebDriverException
from selenium.webdriver.chrome.options import Options
from selenium.webdriver.chrome.service import Service
from selenium.webdriver.support import expected_conditions as EC
from selenium.webdriver.support.ui import WebDriverWait
from webdriver_manager.chrome import ChromeDriverManager

from monitoring.telemetry import capture_error
from utils.files import atomic_write

logger = logging.getLogger(__name__)

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/123.0.0.0 Safari/537.36"
)


class InspectionError(Exception):
    """The page could not be inspected (browser launch or navigation failed)."""

    def __init__(self, url, message):
        super().__init__(message)
        self.url = url


class ArtifactWriteError(Exception):
    """The screenshot or HTML snapshot could not be saved."""


@dataclass(frozen=True)
class InspectionConfig:
    selectors: Tuple[str, ...]
    redirect_pattern: str
    redirect_timeout: float = 7
    page_load_timeout: float = 30
    screenshot_quality: int = 60
    files_dir: Path = Path("files")
    screenshot_filename: str = "screenshot.jpg"
    html_filename: str = "index.html"
    headless: bool = True

    @property
    def screenshot_path(self) -> Path:
        return Path(self.files_dir) / self.screenshot_filename

    @property
    def html_path(self) -> Path:
        return Path(self.files_dir) / self.html_filename


@dataclass(frozen=True)
class PageSignal:
    """Facts observed by one inspection. Immutable once returned."""

    elements: Mapping[str, bool] = field(default_factory=dict)
    redirected: bool = False
    redirected_url: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "elements", MappingProxyType(dict(self.elements)))


class PageInspector(ABC):
    """Performs one isolated inspection of a page per call."""

    @abstractmethod
    def inspect(self, url: str, config: InspectionConfig) -> PageSignal:
        """
        Inspect ``url``.

        Raises:
            InspectionError: On browser launch or navigation failure only.
        """


def get_driver(headless=True):
    """
    Get a configured Chrome driver.
    """
    chrome_options = Options()

    if headless:
        chrome_options.add_argument("--headless=new")

    # Critical flags for Docker environment
    chrome_options.add_argument("--no-sandbox")
    chrome_options.add_argument("--disable-setuid-sandbox")
    chrome_options.add_argument("--disable-dev-shm-usage")
    chrome_options.add_argument("--window-size=1920,1080")

    chrome_options.add_argument(f"--user-agent={USER_AGENT}")
    chrome_options.add_argument("--disable-blink-features=AutomationControlled")
    chrome_options.add_experimental_option("excludeSwitches", ["enable-automation"])
    chrome_options.add_experimental_option("useAutomationExtension", False)

    return webdriver.Chrome(
        service=Service(ChromeDriverManager().install()), options=chrome_options
    )


def find_elements(html_content, selectors):
    """
    Check which CSS selectors match at least one element in the HTML.

    Returns:
        dict: selector -> bool, in the order the selectors were given
    """
    soup = BeautifulSoup(html_content, "html.parser")
    return {selector: soup.select_one(selector) is not None for selector in selectors}


def capture_full_page_jpeg(driver, quality):
    """
    Take a full-page JPEG screenshot through the DevTools protocol.

    Returns:
        bytes: JPEG image data
    """
    metrics = driver.execute_cdp_cmd("Page.getLayoutMetrics", {})
    size = metrics.get("cssContentSize") or metrics["contentSize"]
    shot = driver.execute_cdp_cmd(
        "Page.captureScreenshot",
        {
            "format": "jpeg",
            "quality": quality,
            "captureBeyondViewport": True,
            "clip": {
                "x": 0,
                "y": 0,
                "width": size["width"],
                "height": size["height"],
                "scale": 1,
            },
        },
    )
    return base64.b64decode(shot["data"])


class SeleniumPageInspector(PageInspector):
    """
    Inspector backed by a fresh Chrome session per call.

    Args:
        driver_factory: Callable taking ``headless`` and returning a WebDriver.
    """

    def __init__(self, driver_factory: Callable = get_driver):
        self.driver_factory = driver_factory

    @contextmanager
    def session(self, url, config):
        """Open a browser session that is always quit on exit."""
        try:
            driver = self.driver_factory(headless=config.headless)
        except Exception as e:
            # Driver download (webdriver-manager) fails with requests or OS errors
            raise InspectionError(url, f"Browser launch failed: {getattr(e, 'msg', None) or e}") from e

        try:
            yield driver
        finally:
            try:
                driver.quit()
            except WebDriverException as e:
                logger.warning(f"Error closing browser session: {e}")

    def inspect(self, url, config):
        with self.session(url, config) as driver:
            self._navigate(driver, url, config)
            try:
                redirected, redirected_url = self._wait_for_redirect(driver, config)
                html_content = driver.page_source
            except WebDriverException as e:
                raise InspectionError(url, f"Page checks on {url} failed: {e.msg or e}") from e

            elements = find_elements(html_content, config.selectors)

            signal = PageSignal(
                elements=elements,
                redirected=redirected,
                redirected_url=redirected_url,
            )
            logger.info(f"Inspected {url}: elements={dict(elements)} redirected={redirected}")

            try:
                self._save_artifacts(driver, html_content, config)
            except ArtifactWriteError as e:
                capture_error(e, url=url, stage="artifacts")

        return signal

    def _navigate(self, driver, url, config):
        logger.info(f"Navigating to {url}")
        try:
            driver.set_page_load_timeout(config.page_load_timeout)
            driver.get(url)
        except (TimeoutException, WebDriverException) as e:
            raise InspectionError(url, f"Navigation to {url} failed: {e.msg or e}") from e

    def _wait_for_redirect(self, driver, config):
        """
        Wait up to ``redirect_timeout`` for the URL to match the pattern.

        A timeout is the normal "not redirected" outcome.
        """
        try:
            WebDriverWait(driver, config.redirect_timeout).until(EC.url_matches(config.redirect_pattern))
        except TimeoutException:
            logger.info(f"No redirect matching {config.redirect_pattern!r} within {config.redirect_timeout}s")
            return False, None

        current_url = driver.current_url
        logger.info(f"Redirected to {current_url}")
        return True, current_url

    def _save_artifacts(self, driver, html_content, config):
        try:
            screenshot = capture_full_page_jpeg(driver, config.screenshot_quality)
            atomic_write(config.screenshot_path, screenshot)
            atomic_write(config.html_path, html_content)
        except (OSError, WebDriverException, KeyError, ValueError) as e:
            raise ArtifactWriteError(f"Could not save page artifacts: {e}") from e

        logger.debug(f"Saved {config.screenshot_path} and {config.html_path}")
