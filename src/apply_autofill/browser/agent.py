"""Browser session hosting the auto-filler outside an extension."""

from typing import Any, Optional

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import async_playwright

from apply_autofill.config import settings
from apply_autofill.utils.logging import get_logger

logger = get_logger(__name__)


class BrowserAgent:
    """
    Owns a Playwright Chromium session and its single page.

    The auto-fill components only borrow the page; this agent decides when
    it is opened and closed.
    """

    def __init__(
        self,
        headless: Optional[bool] = None,
        user_data_dir: Optional[str] = None,
        viewport_size: tuple = (1920, 1080),
        timeout_s: Optional[int] = None,
    ):
        """
        Initialize the browser agent.

        Args:
            headless: Run browser in headless mode, defaults to settings
            user_data_dir: Persistent profile directory for logged-in sessions
            viewport_size: Browser viewport size (width, height)
            timeout_s: Navigation timeout in seconds, defaults to settings
        """
        self.headless = settings.browser_headless if headless is None else headless
        self.user_data_dir = user_data_dir or settings.browser_user_data_dir
        self.viewport_size = viewport_size
        self.timeout_ms = (timeout_s or settings.browser_timeout) * 1000
        self.logger = logger.bind(component="browser_agent")

        self.playwright = None
        self.browser = None
        self.context = None
        self.page: Any = None

        self.is_initialized = False
        self.current_url: Optional[str] = None

    async def initialize(self) -> bool:
        """
        Launch Chromium and open a page.

        Returns:
            True if initialization successful, False otherwise
        """
        if self.is_initialized:
            return True

        viewport = {"width": self.viewport_size[0], "height": self.viewport_size[1]}
        try:
            self.playwright = await async_playwright().start()

            if self.user_data_dir:
                self.context = await self.playwright.chromium.launch_persistent_context(
                    self.user_data_dir,
                    headless=self.headless,
                    viewport=viewport,
                )
            else:
                self.browser = await self.playwright.chromium.launch(headless=self.headless)
                self.context = await self.browser.new_context(viewport=viewport)

            self.context.set_default_timeout(self.timeout_ms)
            self.page = self.context.pages[0] if self.context.pages else await self.context.new_page()

        except PlaywrightError as e:
            self.logger.error(
                "Failed to initialize browser agent",
                error=str(e),
                error_type=type(e).__name__,
            )
            await self.close()
            return False

        self.is_initialized = True
        self.logger.info(
            "Browser agent initialized successfully",
            headless=self.headless,
            persistent=bool(self.user_data_dir),
            viewport_size=self.viewport_size,
        )
        return True

    async def navigate_to(self, url: str) -> bool:
        """
        Navigate to a specific URL.

        Args:
            url: Target URL

        Returns:
            True if navigation successful, False otherwise
        """
        if not self.is_initialized and not await self.initialize():
            return False

        try:
            await self.page.goto(url, wait_until="domcontentloaded")
        except PlaywrightError as e:
            self.logger.error("Navigation failed", url=url, error=str(e))
            return False

        self.current_url = url
        self.logger.info("Navigated to URL", url=url, title=await self.page.title())
        return True

    async def close(self) -> None:
        """Close the browser and stop Playwright."""
        if self.context is not None:
            await self.context.close()
        if self.browser is not None:
            await self.browser.close()
        if self.playwright is not None:
            await self.playwright.stop()

        self.context = None
        self.browser = None
        self.playwright = None
        self.page = None
        self.is_initialized = False
        self.logger.info("Browser agent closed")

    async def __aenter__(self) -> "BrowserAgent":
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
