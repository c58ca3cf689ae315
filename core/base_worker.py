"""
Base Worker Class for the Backlog Unroller
==========================================
All workers inherit from this class and implement the session() method.
Handles browser setup/teardown, waiting for the board, and error handling.
"""

from abc import ABC, abstractmethod
from typing import Dict, Any, Optional
from playwright.sync_api import sync_playwright, Browser, Page, BrowserContext
import logging


LAUNCH_ARGS = [
    '--disable-blink-features=AutomationControlled',
    '--no-sandbox',
    '--disable-dev-shm-usage'
]


class BaseWorker(ABC):
    """
    Abstract base class for all unroller workers.

    Each worker must:
    1. Define a unique SOURCE_NAME (used as settings key and logger name)
    2. Implement session(), which drives one open page until it is done

    The base class provides:
    - Playwright browser management (system Chrome or bundled Chromium,
      optionally with a persistent profile so an existing login is reused)
    - Error handling and logging around the session
    """

    # Must be overridden by each worker
    SOURCE_NAME: str = "base_worker"
    DESCRIPTION: str = "Base worker class - do not use directly"

    def __init__(self):
        self.logger = logging.getLogger(self.SOURCE_NAME)
        self.browser: Optional[Browser] = None
        self.context: Optional[BrowserContext] = None
        self.page: Optional[Page] = None
        self._playwright = None

    def setup_browser(self, headless: bool = False, use_system_chrome: bool = True,
                      user_data_dir: str = '') -> Page:
        """
        Initialize Playwright browser with common settings.

        Args:
            headless: Run browser in headless mode
            use_system_chrome: Use system Chrome instead of Playwright's Chromium
            user_data_dir: Profile directory; when set, a persistent context is
                used so cookies (and therefore logins) survive between runs

        Returns a Page object ready for navigation.
        """
        self._playwright = sync_playwright().start()
        chromium = self._playwright.chromium
        options = {'headless': headless, 'args': LAUNCH_ARGS,
                   'viewport': {'width': 1920, 'height': 1080}}

        if use_system_chrome:
            try:
                self._launch(chromium, user_data_dir, channel="chrome", **options)
                self.logger.info("Using system Chrome browser")
            except Exception as e:
                self.logger.warning(f"Could not launch system Chrome: {e}")
                self.logger.info("Falling back to Playwright Chromium")
                self._launch(chromium, user_data_dir, **options)
        else:
            self._launch(chromium, user_data_dir, **options)

        self.page = self.context.pages[0] if self.context.pages else self.context.new_page()
        self.logger.info("Browser initialized successfully")
        return self.page

    def _launch(self, chromium, user_data_dir: str, **options):
        if user_data_dir:
            self.context = chromium.launch_persistent_context(user_data_dir, **options)
            self.browser = self.context.browser
            return
        viewport = options.pop('viewport')
        self.browser = chromium.launch(**options)
        self.context = self.browser.new_context(viewport=viewport)

    def teardown_browser(self):
        """
        Clean up browser resources. Each step is wrapped individually
        so a failure in one doesn't leave the others as zombies.
        """
        for name, obj, method in [
            ("page",     self.page,        "close"),
            ("context",  self.context,     "close"),
            ("browser",  self.browser,     "close"),
            ("playwright", self._playwright, "stop"),
        ]:
            if obj is not None:
                try:
                    getattr(obj, method)()
                except Exception as e:
                    self.logger.warning(f"Error closing {name}: {e}")

        self.page = None
        self.context = None
        self.browser = None
        self._playwright = None
        self.logger.info("Browser closed successfully")

    def wait_for_data_load(self, indicator_selector: str, timeout: int = 30000) -> bool:
        """Wait for a specific element indicating data has loaded."""
        try:
            self.page.wait_for_selector(indicator_selector, timeout=timeout)
            return True
        except Exception as e:
            self.logger.warning(f"Timeout waiting for {indicator_selector}: {e}")
            return False

    @abstractmethod
    def session(self, options: Dict[str, Any]) -> Dict[str, Any]:
        """
        Drive one browser session - MUST be implemented by each worker.

        Args:
            options: Run options from the command line (url, find, fresh,
                duration, headless ...)

        Returns:
            Summary dict, e.g. {'sections': 4, 'items': 312, 'injected': 312}
        """
        pass

    def run(self, options: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Execute the worker with proper setup and teardown.
        This is the method called by the driver.

        Returns:
            Summary dict, or empty dict on failure
        """
        options = options or {}
        result = {}
        try:
            self.setup_browser(
                headless=options.get('headless', False),
                use_system_chrome=options.get('use_system_chrome', True),
                user_data_dir=options.get('user_data_dir', ''),
            )
            result = self.session(options)
            self.logger.info(f"Session completed: {result}")
        except Exception as e:
            self.logger.error(f"Worker failed: {e}")
            result = {}
        finally:
            self.teardown_browser()

        return result

    def get_metadata(self) -> Dict[str, str]:
        """Return worker metadata for documentation."""
        return {
            'source_name': self.SOURCE_NAME,
            'description': self.DESCRIPTION
        }
